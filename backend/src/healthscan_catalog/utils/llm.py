# backend/src/healthscan_catalog/utils/llm.py
import json

import requests


def _strip_fences(s: str) -> str:
    s = s.strip()
    if s.startswith("```"):
        s = s.strip("` \n")
        if s.lower().startswith("json"):
            s = s[4:].lstrip()
    return s


def llm_generate_json(
    system_prompt: str,
    user_prompt: str,
    model: str,
    endpoint: str,
    json_root: str,
    timeout: int = 120,
):
    """
    Calls Ollama /api/chat and expects plain JSON back.
    Strips code fences, checks the shape and returns data[json_root].
    """
    url = endpoint.rstrip("/") + "/api/chat"
    payload = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        "stream": False,
        "format": "json",
    }
    r = requests.post(url, json=payload, timeout=timeout)
    r.raise_for_status()
    content = r.json().get("message", {}).get("content", "")
    content = _strip_fences(content)
    data = json.loads(content)
    if isinstance(data, dict) and json_root in data:
        return data[json_root]
    raise ValueError("Unexpected JSON shape from LLM")
