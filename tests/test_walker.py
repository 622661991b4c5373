"""Tests for fence discovery, splicing and the document walker."""

import pytest

from tutorialgen.errors import ExecutionError, PreconditionError, ValidationError
from tutorialgen.markdown import find_runnable_blocks, render_node, splice
from tutorialgen.types import CodeNode, Document, HtmlNode, ImageNode, Kind, Position
from tutorialgen.walker import run_code_blocks


def doc(document, source: str) -> Document:
    return Document(path=document.path, source=source)


class TestFindRunnableBlocks:
    """Tests for recognising run: fences."""

    def test_only_run_fences(self):
        source = "```js\nlet x;\n```\n\n```run:command cwd=app\nls\n```\n"
        blocks = find_runnable_blocks(source)
        assert len(blocks) == 1
        assert blocks[0].kind is Kind.COMMAND
        assert blocks[0].meta == "cwd=app"
        assert blocks[0].body == "ls\n"
        assert blocks[0].position == Position(4, 7)
        assert blocks[0].position.line == 5

    def test_tab_after_tag(self):
        blocks = find_runnable_blocks("```run:command\tcwd=app\nls\n```\n")
        assert blocks[0].kind is Kind.COMMAND
        assert blocks[0].meta == "cwd=app"

    def test_subkinds(self):
        source = "```run:file:patch lang=js\n@@\n```\n\n```run:server:start\nnpm start\n```\n"
        assert [b.kind for b in find_runnable_blocks(source)] == [Kind.FILE_PATCH, Kind.SERVER_START]

    def test_unknown_kind(self):
        with pytest.raises(ValidationError, match="run:explode"):
            find_runnable_blocks("intro\n\n```run:explode\n```\n")


class TestRender:
    """Tests for turning replacement nodes back into markdown."""

    def test_code_with_meta(self):
        node = CodeNode(lang="js", meta='{ data-filename="a.js" }', value="let x;")
        assert render_node(node) == ['```js { data-filename="a.js" }', "let x;", "```"]

    def test_fence_longer_than_content_backticks(self):
        lines = render_node(CodeNode(lang="markdown", value="```js\nx\n```"))
        assert lines[0] == "````markdown"
        assert lines[-1] == "````"

    def test_image_and_html(self):
        assert render_node(ImageNode(url="/screenshots/a/b.png", alt="B")) == ["![B](/screenshots/a/b.png)"]
        assert render_node(HtmlNode(value="<img src=\"x\">")) == ['<img src="x">']


class TestSplice:
    """Tests for replacing line ranges in the original source."""

    def test_text_outside_blocks_untouched(self):
        source = "# Title\n\n*  odd   spacing*\n\n```run:command\nls\n```\n\nafter  \n"
        out = splice(source, [(Position(4, 7), CodeNode(lang="shell", value="$ ls"))])
        assert out == "# Title\n\n*  odd   spacing*\n\n```shell\n$ ls\n```\n\nafter  \n"

    def test_removed_block_collapses_blank_lines(self):
        source = "A\n\n```run:ignore\nx\n```\n\nB\n"
        assert splice(source, [(Position(2, 5), None)]) == "A\n\nB\n"

    def test_indented_in_list_item(self):
        source = "1. Step one\n\n   ```run:command\n   echo hi\n   ```\n"
        out = splice(source, [(Position(2, 5), CodeNode(lang="shell", value="$ echo hi\n\nhi"))])
        assert out == "1. Step one\n\n   ```shell\n   $ echo hi\n\n   hi\n   ```\n"


class TestRunCodeBlocks:
    """End-to-end tests for a single document."""

    def test_command_then_screenshot(self, document, options, session, fake_browser):
        source = (
            "# Intro\n"
            "\n"
            "```run:command\n"
            "echo hi\n"
            "```\n"
            "\n"
            '```run:screenshot width=800 height=0 filename=shot.png alt="Home page"\n'
            "visit http://localhost:4200\n"
            "```\n"
            "\n"
            "Done.\n"
        )
        out = run_code_blocks(doc(document, source), options, session)

        assert out == (
            "# Intro\n"
            "\n"
            "```shell\n"
            "$ echo hi\n"
            "hi\n"
            "```\n"
            "\n"
            "![Home page](/screenshots/01-intro/shot.png)\n"
            "\n"
            "Done.\n"
        )
        assert (options.assets / "screenshots" / "01-intro" / "shot.png").is_file()
        assert fake_browser.specs[0].full_page

    def test_blocks_see_earlier_side_effects(self, document, options, session):
        source = (
            "```run:file:create filename=hello.txt\n"
            "hello\n"
            "```\n"
            "\n"
            "```run:command\n"
            "cat hello.txt\n"
            "```\n"
        )
        out = run_code_blocks(doc(document, source), options, session)
        assert "$ cat hello.txt\nhello\n" in out

    def test_bad_tag_fails_before_anything_runs(self, document, options, session):
        source = "```run:command\ntouch early.txt\n```\n\n```run:comand\nls\n```\n"
        with pytest.raises(ValidationError):
            run_code_blocks(doc(document, source), options, session)
        assert not (options.cwd / "early.txt").exists()

    def test_error_names_document_and_line(self, document, options, session):
        source = "intro\n\n```run:command\nexit 4\n```\n"
        with pytest.raises(ExecutionError) as exc:
            run_code_blocks(doc(document, source), options, session)
        assert str(exc.value).startswith(f"{document.path}:3: ")

    def test_unstopped_server_is_a_leak(self, document, options, session):
        source = "```run:server:start hidden\nsleep 30\n```\n"
        with pytest.raises(PreconditionError, match="sleep 30"):
            run_code_blocks(doc(document, source), options, session)
        assert len(session.servers) == 0

    def test_server_started_and_stopped(self, document, options, session):
        source = (
            "```run:server:start hidden\nsleep 30\n```\n"
            "\n"
            "```run:command\necho between\n```\n"
            "\n"
            "```run:server:stop\nsleep 30\n```\n"
        )
        out = run_code_blocks(doc(document, source), options, session)
        assert out == "```shell\n$ echo between\nbetween\n```\n"
