import os
from pathlib import Path

from pinecone_context.util.yaml import load_yaml_config

PROJECT_ROOT = Path(os.environ.get("PINECONE_CONTEXT_ROOT", Path.cwd()))

__all__ = ["PROJECT_ROOT", "load_yaml_config"]
