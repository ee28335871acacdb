"""
Figma 設計文件來源

透過 Figma REST API 讀取檔案（或單一節點），或載入本機匯出的 JSON。
"""

import json
from pathlib import Path
from typing import Optional

import requests

from .errors import InvalidInputError

DEFAULT_TIMEOUT = 30


class FigmaAPIClient:
    """Figma REST API 唯讀封裝."""

    BASE_URL = "https://api.figma.com/v1"

    def __init__(self, token: str, timeout: float = DEFAULT_TIMEOUT):
        self.token = token
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "X-Figma-Token": token,
            "Content-Type": "application/json",
        })

    def get_file(self, file_key: str, node_ids: Optional[list] = None) -> dict:
        url = f"{self.BASE_URL}/files/{file_key}"
        params = {}
        if node_ids:
            params["ids"] = ",".join(node_ids)
        resp = self.session.get(url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def get_file_nodes(self, file_key: str, node_ids: list) -> dict:
        url = f"{self.BASE_URL}/files/{file_key}/nodes"
        params = {"ids": ",".join(node_ids)}
        resp = self.session.get(url, params=params, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def get_document(self, file_key: str, node_id: Optional[str] = None) -> dict:
        """整份檔案，或以 node_id 指定的子樹（包成 {"document": node}）."""
        if not node_id:
            return self.get_file(file_key)
        data = self.get_file_nodes(file_key, [node_id])
        entry = (data.get("nodes") or {}).get(node_id) or {}
        if not entry.get("document"):
            raise InvalidInputError(f"Figma 檔案 '{file_key}' 中找不到節點 '{node_id}'")
        return {"name": data.get("name", node_id), "document": entry["document"]}


def load_design(path: str) -> dict:
    """載入本機 JSON 設計檔（Figma 檔案回應或單一節點）."""
    p = Path(path)
    if not p.exists():
        raise InvalidInputError(f"找不到設計檔：{path}")
    try:
        with open(p, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"'{path}' 不是合法的 JSON：{exc}") from exc


def describe_http_error(exc: Exception, file_key: str) -> str:
    """將 Figma API 錯誤轉成友善訊息."""
    status = getattr(getattr(exc, "response", None), "status_code", None)
    if status == 403:
        return "Figma API 403：Token 無效或已過期，請重新產生 FIGMA_TOKEN。"
    if status == 404:
        return f"Figma API 404：找不到檔案 '{file_key}'，請確認 file key 是否正確。"
    return f"Figma API 錯誤：{exc}"
