import pytest
from pydantic import ValidationError

from pycomputeragent.tools.builtin_tools.grep_tool import GrepInput, GrepTool


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.py").write_text("import os\n\ndef main():\n    return os.getcwd()\n")
    (tmp_path / "src" / "util.js").write_text("const os = require('os');\n")
    (tmp_path / "README.md").write_text("Nothing here\n")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.py").write_text("import os\n")
    return tmp_path


async def grep(cwd, **kw):
    return await GrepTool(cwd=cwd).execute(GrepInput.model_validate(kw))


@pytest.mark.asyncio
async def test_files_with_matches_is_default(project):
    res = await grep(project, pattern=r"\bos\b")
    assert res.success
    assert res.content.splitlines() == ["src/app.py", "src/util.js"]


@pytest.mark.asyncio
async def test_content_with_line_numbers_and_context(project):
    res = await grep(project, pattern="def main", output_mode="content", **{"-n": True, "-A": 1})
    assert res.content.splitlines() == [
        "src/app.py:3:def main():",
        "src/app.py-4-    return os.getcwd()",
    ]


@pytest.mark.asyncio
async def test_count_and_type_filter(project):
    res = await grep(project, pattern="os", output_mode="count", type="py")
    assert res.content == "src/app.py:2"


@pytest.mark.asyncio
async def test_glob_and_ignore_case(project):
    res = await grep(project, pattern="NOTHING", glob="*.md", **{"-i": True})
    assert res.content == "README.md"


@pytest.mark.asyncio
async def test_multiline(project):
    res = await grep(project, pattern=r"main\(\):.*getcwd", multiline=True, output_mode="count")
    assert res.content == "src/app.py:1"


@pytest.mark.asyncio
async def test_head_limit(project):
    res = await grep(project, pattern="o", head_limit=1)
    assert len(res.content.splitlines()) == 1


@pytest.mark.asyncio
async def test_no_matches(project):
    res = await grep(project, pattern="zzz_not_there")
    assert res.success is True
    assert res.content == "No matches found"


@pytest.mark.asyncio
async def test_errors(project):
    assert (await grep(project, pattern="(")).error.startswith("Invalid regex")
    assert (await grep(project, pattern="x", type="cobol")).error == "Unknown file type: cobol"
    assert (await grep(project, pattern="x", path="missing")).error == "Path not found: missing"


def test_flag_aliases_and_names():
    by_alias = GrepInput.model_validate({"pattern": "x", "-i": True, "-C": 2})
    by_name = GrepInput.model_validate({"pattern": "x", "ignore_case": True, "context": 2})
    assert by_alias == by_name
    with pytest.raises(ValidationError):
        GrepInput.model_validate({"pattern": "x", "output_mode": "lines"})
