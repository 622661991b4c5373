"""
Compile a screenshot script into a standalone Playwright program.

The script has one directive per line:

    visit http://localhost:4200/rentals
    wait .rental img

The generated program is fed to a separate Python interpreter on stdin, so a
crashing or hanging browser never takes the build process down with it.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import List

from ...errors import ValidationError

VERBS = ("visit", "wait")

# One promise per <img>, combined with Promise.all: any broken image fails the capture.
WAIT_FOR_IMAGES_JS = """() => Promise.all(Array.from(document.images, img => {
  if (img.complete) {
    return img.naturalHeight === 0
      ? Promise.reject(new Error(`failed to load ${img.src}`))
      : null;
  }
  return new Promise((resolve, reject) => {
    img.addEventListener('load', resolve, { once: true });
    img.addEventListener('error', () => reject(new Error(`failed to load ${img.src}`)), { once: true });
  });
}))"""


@dataclass(frozen=True)
class Step:
    verb: str
    arg: str


@dataclass(frozen=True)
class CaptureSpec:
    path: str
    width: int
    height: int  # 0 means full page
    x: int = 0
    y: int = 0
    scale: int = 1

    @property
    def full_page(self) -> bool:
        return self.height == 0


def parse_steps(body: str) -> List[Step]:
    steps: List[Step] = []
    for number, line in enumerate(body.split("\n"), start=1):
        if not line.strip():
            continue
        parts = re.split(r"\s+", line.strip(), maxsplit=1)
        verb = parts[0]
        if verb not in VERBS:
            raise ValidationError(f"screenshot script line {number}: unknown action {verb!r} (expected visit or wait)")
        if len(parts) < 2 or not parts[1].strip():
            raise ValidationError(f"screenshot script line {number}: {verb} needs an argument")
        steps.append(Step(verb, parts[1].strip()))
    return steps


def _step_source(step: Step) -> str:
    if step.verb == "visit":
        return f"            page.goto({step.arg!r}, wait_until=\"networkidle\")"
    return f"            page.wait_for_selector({step.arg!r})"


def compile_program(steps: List[Step], spec: CaptureSpec) -> str:
    viewport = {"width": spec.width, "height": spec.height or 100}

    if spec.full_page:
        options = {"path": spec.path, "type": "png", "full_page": True}
    else:
        options = {
            "path": spec.path,
            "type": "png",
            "clip": {"x": spec.x, "y": spec.y, "width": spec.width, "height": spec.height},
        }

    script = [
        "import sys",
        "",
        "from playwright.sync_api import sync_playwright",
        "",
        f"WAIT_FOR_IMAGES = {WAIT_FOR_IMAGES_JS!r}",
        "",
        "",
        "def main() -> int:",
        "    with sync_playwright() as p:",
        "        browser = p.chromium.launch(headless=True)",
        "        try:",
        f"            page = browser.new_page(viewport={viewport!r}, device_scale_factor={spec.scale})",
    ]
    script.extend(_step_source(step) for step in steps)
    script.extend([
        "            page.evaluate(WAIT_FOR_IMAGES)",
        f"            page.screenshot(**{options!r})",
        "        finally:",
        "            browser.close()",
        "    return 0",
        "",
        "",
        'if __name__ == "__main__":',
        "    sys.exit(main())",
        "",
    ])
    return "\n".join(script)
