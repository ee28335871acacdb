"""
共用測試資料：一份小型 Figma 檔案回應（卡片 + 標題 + 內文 + 按鈕）。
"""
import copy

import pytest


def _solid(r, g, b, a=1):
    return [{"type": "SOLID", "color": {"r": r, "g": g, "b": b, "a": a}}]


def _box(x, y, w, h):
    return {"x": x, "y": y, "width": w, "height": h}


HERO_DOCUMENT = {
    "name": "Landing",
    "document": {
        "type": "DOCUMENT",
        "name": "Landing Page",
        "children": [
            {
                "type": "CANVAS",
                "name": "Page 1",
                "children": [
                    {
                        "type": "FRAME",
                        "name": "Hero Card",
                        "absoluteBoundingBox": _box(0, 0, 400, 300),
                        "fills": _solid(1, 1, 1),
                        "cornerRadius": 8,
                        "itemSpacing": 16,
                        "paddingTop": 24,
                        "paddingLeft": 24,
                        "children": [
                            {
                                "type": "TEXT",
                                "name": "Title",
                                "characters": "Welcome",
                                "style": {"fontFamily": "Inter", "fontSize": 24},
                                "fills": _solid(0.2, 0.2, 0.2),
                                "absoluteBoundingBox": _box(24, 24, 352, 32),
                            },
                            {
                                "type": "TEXT",
                                "name": "Body",
                                "characters": "Build faster.",
                                "style": {"fontFamily": "Roboto", "fontSize": 16},
                                "fills": _solid(0.4, 0.4, 0.4),
                                "absoluteBoundingBox": _box(24, 72, 352, 48),
                            },
                            {
                                "type": "RECTANGLE",
                                "name": "Button",
                                "fills": _solid(0, 0.2, 1),
                                "cornerRadius": 6,
                                "absoluteBoundingBox": _box(24, 220, 140, 44),
                            },
                            {
                                "type": "TEXT",
                                "name": "Button Label",
                                "characters": "Get Started",
                                "style": {"fontFamily": "Inter", "fontSize": 14},
                                "fills": _solid(1, 1, 1),
                                "absoluteBoundingBox": _box(48, 232, 92, 20),
                            },
                        ],
                    }
                ],
            }
        ],
    },
}


@pytest.fixture
def hero_document():
    return copy.deepcopy(HERO_DOCUMENT)
