import argparse
import glob
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from . import settings
from .errors import TutorialError
from .options import Options
from .registry import list_directives
from .servers import Session
from .types import Document
from .utils import read_text, write_text
from .walker import run_code_blocks

# Import directives package so decorators run and register classes.
from . import directives  # noqa: F401

DO_NOT_EDIT = (
    "<!--lint disable no-undefined-references-->\n\n"
    "<!-- Heads up! This is a generated file, do not edit directly. "
    "You can find the source at {url} -->\n\n"
)


def do_not_edit(text: str, source: Path, options: Options) -> str:
    if not options.repo:
        return text
    try:
        rel = source.resolve().relative_to(options.root).as_posix()
    except ValueError:
        rel = source.name
    url = f"https://github.com/{options.repo}/blob/{options.branch}/{rel}"
    return DO_NOT_EDIT.format(url=url) + text


def find_chapters(options: Options, pattern: Optional[str] = None) -> List[Path]:
    pattern = pattern or options.chapters
    if not Path(pattern).is_absolute():
        pattern = str(options.root / pattern)
    return [Path(p) for p in sorted(glob.glob(pattern))]


def prepare(options: Options) -> None:
    src_assets = options.root / "src" / "assets"
    if src_assets.is_dir():
        shutil.copytree(src_assets, options.assets, dirs_exist_ok=True)
    options.assets.mkdir(parents=True, exist_ok=True)
    options.out_dir.mkdir(parents=True, exist_ok=True)
    options.cwd.mkdir(parents=True, exist_ok=True)


def run_pipeline(options: Options, pattern: Optional[str] = None) -> List[Path]:
    prepare(options)
    chapters = find_chapters(options, pattern)
    if not chapters:
        print(f"[pipeline] ⚠️ no chapters match {pattern or options.chapters}")

    written: List[Path] = []
    with Session() as session:
        for path in chapters:
            print(f"[pipeline] Processing {path.name}")
            document = Document(path=path, source=read_text(path))
            result = run_code_blocks(document, options, session)
            out = options.out_dir / path.name
            write_text(out, do_not_edit(result, path, options))
            print(f"[pipeline] ✅ {out}")
            written.append(out)
    return written


def main(argv=None):
    parser = argparse.ArgumentParser(description="tutorialgen pipeline")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_run = sub.add_parser("run", help="Run every runnable block in the matching chapters")
    p_run.add_argument("pattern", nargs="?", default=None,
                       help=f"Chapter glob, relative to --root (default: {settings.TUTORIAL_CHAPTERS})")
    p_run.add_argument("--root", type=str, default=settings.TUTORIAL_ROOT,
                       help="Tutorial project directory (default: TUTORIAL_ROOT or .)")

    sub.add_parser("list-directives", help="List available run: directives")

    args = parser.parse_args(argv)

    if args.cmd == "list-directives":
        for name in list_directives():
            print(f"run:{name}")
        return 0

    if args.cmd == "run":
        try:
            options = Options.for_root(Path(args.root))
            written = run_pipeline(options, args.pattern)
        except TutorialError as e:
            print(f"❌ {e}", file=sys.stderr)
            return 1
        print(f"\n{len(written)} chapter(s) written to: {options.out_dir}")
        return 0


if __name__ == "__main__":
    raise SystemExit(main())
