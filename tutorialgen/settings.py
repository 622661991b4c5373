from dotenv import load_dotenv
import os
import sys

# picks up .env from the current directory
load_dotenv()


# Project layout
TUTORIAL_ROOT = os.getenv("TUTORIAL_ROOT", ".")
TUTORIAL_CHAPTERS = os.getenv("TUTORIAL_CHAPTERS", os.path.join("src", "chapters", "*.md"))
TUTORIAL_REPO = os.getenv("TUTORIAL_REPO", "")
TUTORIAL_BRANCH = os.getenv("TUTORIAL_BRANCH", "master")

# cfg flags for #[cfg(...)] and run:pause
CI = bool(os.getenv("CI"))

# Servers
SERVER_START_TIMEOUT = float(os.getenv("SERVER_START_TIMEOUT", "60"))
SERVER_STOP_GRACE = float(os.getenv("SERVER_STOP_GRACE", "10"))

# Screenshots run in a separate interpreter that has playwright installed
SCREENSHOT_PYTHON = os.getenv("SCREENSHOT_PYTHON", sys.executable)
SCREENSHOT_TIMEOUT = float(os.getenv("SCREENSHOT_TIMEOUT", "120"))

# Commands run by run:checkpoint before committing, separated by ';'
CHECKPOINT_COMMANDS = [c.strip() for c in os.getenv("CHECKPOINT_COMMANDS", "").split(";") if c.strip()]
