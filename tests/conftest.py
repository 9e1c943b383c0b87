from pathlib import Path
from textwrap import dedent

import pytest

from ipcguard.project import ProjectContext


TSCONFIG = """\
{
	// strict mode turns optional members into T | undefined
	"compilerOptions": {
		"strict": true,
		"target": "ES2020",
	},
}
"""


def write(root: Path, rel_path: str, text: str) -> Path:
	path = root / rel_path
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(dedent(text), encoding="utf-8")
	return path


@pytest.fixture
def project_dir(tmp_path):
	write(tmp_path, "tsconfig.json", TSCONFIG)
	return tmp_path


@pytest.fixture
def project(project_dir):
	return ProjectContext(str(project_dir / "tsconfig.json"))
