from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping


def details_path(directory: Path, post_id: str) -> Path:
    return Path(directory) / f"post_{post_id}_details.json"


def write_post_details(directory: Path, post_id: str, post: Mapping[str, Any]) -> Path:
    path = details_path(directory, post_id)
    # Encode before opening so an unencodable payload leaves no empty file behind.
    data = json.dumps(post, indent=2, ensure_ascii=False).encode("utf-8")
    path.write_bytes(data)
    return path
