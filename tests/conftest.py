import pathlib

import pytest

from mquery.converters import MdocToASTConverter


@pytest.fixture
def top_dir() -> pathlib.Path:
    return pathlib.Path(__file__).resolve().absolute().parent


@pytest.fixture
def files_dir(top_dir):
    return (top_dir / "files").resolve().absolute()


@pytest.fixture
def sample_page(files_dir):
    return files_dir / "sample.eclass.5"


@pytest.fixture
def tool_page(files_dir):
    return files_dir / "tool.1"


@pytest.fixture
def sample_doc(sample_page):
    return MdocToASTConverter().convert(sample_page)


@pytest.fixture
def tool_doc(tool_page):
    return MdocToASTConverter().convert(tool_page)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's configuration and environment out of the tests."""
    monkeypatch.setenv("MQUERY_CONFIG", str(tmp_path / "config.yaml"))
    for name in ("MQUERY_LOG_LEVEL", "MQUERY_VARIABLE_SUBSECTIONS", "MQUERY_REFERENCES_HEADER"):
        monkeypatch.delenv(name, raising=False)

    import mquery.config as config_module
    monkeypatch.setattr(config_module, "_config_manager", None)
