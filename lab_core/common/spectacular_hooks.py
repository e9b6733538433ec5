# lab_core/common/spectacular_hooks.py
from __future__ import annotations


def preprocess_exclude_legacy_api(endpoints):
    """
    ROOT_URLCONF mounts the API twice:
      /api/v1/  (primary)
      /api/     (legacy alias)

    Without this hook drf-spectacular documents both, producing duplicate
    paths and operationId collisions. Keep /api/v1/* only.
    """
    filtered = []
    for path, path_regex, method, callback in endpoints:
        if path.startswith("/api/") and not path.startswith("/api/v1/"):
            continue
        filtered.append((path, path_regex, method, callback))
    return filtered
