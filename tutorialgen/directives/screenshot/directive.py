from __future__ import annotations
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from PIL import Image

from ...errors import ResourceError, ValidationError
from ...options import Options
from ...process import run_process
from ...registry import register_directive
from ...types import HtmlNode, ImageNode, Kind, RunnableBlock
from ..base import BaseDirective, Context
from ..parse_args import Number, ToBool, optional, parse_args, required
from .compiler import CaptureSpec, compile_program, parse_steps
from .markup import img_tag


@dataclass
class ScreenshotArgs:
    filename: str
    alt: str
    width: int
    height: int = 0
    x: int = 0
    y: int = 0
    retina: bool = False


FIELDS = [
    required("filename"),
    required("alt"),
    required("width", Number),
    optional("height", Number, 0),
    optional("x", Number, 0),
    optional("y", Number, 0),
    optional("retina", ToBool, False),
]


def validate(args: ScreenshotArgs) -> None:
    problems: List[str] = []
    # screenshots/<namespace>/ keeps documents apart, so no subdirectories
    if Path(args.filename).name != args.filename or "\\" in args.filename:
        problems.append(f"filename must not contain a directory ({args.filename})")
    if Path(args.filename).suffix != ".png":
        problems.append(f"filename must have .png extension ({args.filename})")
    if args.width <= 0:
        problems.append(f"width must be positive (width={args.width})")
    if args.height < 0:
        problems.append(f"height must not be negative (height={args.height})")
    if args.height == 0 and (args.x != 0 or args.y != 0):
        problems.append(
            f"cannot specify x and y for full page screenshots (height=0, x={args.x}, y={args.y})"
        )
    if problems:
        raise ValidationError("; ".join(problems))


def output_filename(filename: str, retina: bool) -> str:
    if not retina:
        return filename
    return f"{Path(filename).stem}@2x.png"


def run_browser_program(program: str, spec: CaptureSpec, options: Options) -> None:
    """Execute the generated program in its own interpreter."""
    print(f"[screenshot] $ {options.screenshot_python} -\n{program.rstrip()}")
    # own process group, so a timeout also takes down the browsers it launched
    run_process(
        [options.screenshot_python, "-"],
        stdin=program,
        timeout=options.screenshot_timeout,
        new_session=True,
    )


@register_directive
class ScreenshotDirective(BaseDirective):
    """
    run:screenshot width=1024 height=0 filename=index.png alt="The home page"
    Drives a headless browser through the visit/wait script in the body
    and replaces the block with an image of the result.
    """

    KIND = Kind.SCREENSHOT

    def run(self, block: RunnableBlock, ctx: Context) -> Union[ImageNode, HtmlNode]:
        args = parse_args(block, FIELDS, ScreenshotArgs)

        if not ctx.document.basename:
            raise ResourceError("unknown basename: cannot namespace screenshots")
        validate(args)
        steps = parse_steps(block.body)

        namespace = ctx.document.namespace
        out_dir = ctx.options.assets / "screenshots" / namespace
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ResourceError(f"cannot create {out_dir}: {e}") from e

        filename = output_filename(args.filename, args.retina)
        path = out_dir / filename

        fd, tmp = tempfile.mkstemp(prefix=f".{Path(filename).stem}.", suffix=".png", dir=out_dir)
        os.close(fd)
        tmp_path = Path(tmp)
        spec = CaptureSpec(
            path=str(tmp_path),
            width=args.width,
            height=args.height,
            x=args.x,
            y=args.y,
            scale=2 if args.retina else 1,
        )
        try:
            run_browser_program(compile_program(steps, spec), spec, ctx.options)
            tmp_path.replace(path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        print(f"[screenshot] ✅ {path}")

        src = f"/screenshots/{namespace}/{filename}"

        if args.retina:
            with Image.open(path) as image:
                pixel_width, pixel_height = image.size
            return HtmlNode(
                value=img_tag(src, args.alt, pixel_width // 2, pixel_height // 2),
                position=block.position,
            )
        return ImageNode(url=src, alt=args.alt, position=block.position)
