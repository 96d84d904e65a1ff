from __future__ import annotations
import os

WORKFLOW_FILE = os.environ.get("MATRIXCI_WORKFLOW") or None
REPO_ROOT = os.environ.get("MATRIXCI_REPO_ROOT", ".")
WORKERS = int(os.environ.get("MATRIXCI_WORKERS", "0")) or None
ISOLATE = os.environ.get("MATRIXCI_ISOLATE", "1").lower() not in ("0", "false", "no")
HOST = os.environ.get("MATRIXCI_HOST", "127.0.0.1")
PORT = int(os.environ.get("MATRIXCI_PORT", "8000"))
