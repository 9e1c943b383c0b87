from __future__ import annotations

import os
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel

from ipcguard.errors import IpcGuardError
from ipcguard.hooks import ApiStubTransformHook
from ipcguard.model import FileReport
from ipcguard.project import ProjectPool
from ipcguard.scanner import check_source
from ipcguard.settings import Settings


class CheckRequest(BaseModel):
	path: str
	source: Optional[str] = None
	tsconfig_path: Optional[str] = None


class TransformRequest(BaseModel):
	file_id: str
	code: str


class TransformResponse(BaseModel):
	applied: bool
	code: str


def create_app(settings: Optional[Settings] = None) -> FastAPI:
	settings = settings or Settings()
	app = FastAPI(title="ipcguard")
	app.state.settings = settings
	app.state.pool = ProjectPool(settings.cycle_policy, settings.missing_declaration_policy)
	app.state.hook = None

	def transform_hook(request: Request) -> ApiStubTransformHook:
		if request.app.state.hook is None:
			project = request.app.state.pool.get(settings.tsconfig_path)
			request.app.state.hook = ApiStubTransformHook(
				settings.api_types_file, project, settings.resolved_types_root()
			)
		return request.app.state.hook

	@app.post("/check", response_model=FileReport)
	def check(req: CheckRequest, request: Request) -> FileReport:
		path = os.path.abspath(req.path)
		try:
			project = request.app.state.pool.get(req.tsconfig_path or settings.tsconfig_path)
			return check_source(
				project,
				path,
				req.source,
				surface_dir=settings.api_surface_dir,
				prefilter=settings.prefilter_exports,
			)
		except IpcGuardError as e:
			raise HTTPException(status_code=400, detail=str(e))

	@app.post("/transform", response_model=TransformResponse)
	def transform(req: TransformRequest, request: Request) -> TransformResponse:
		try:
			result = transform_hook(request).transform(req.file_id, req.code)
		except IpcGuardError as e:
			raise HTTPException(status_code=400, detail=str(e))
		if result is None:
			return TransformResponse(applied=False, code=req.code)
		return TransformResponse(applied=True, code=result.code)

	return app


app = create_app()
