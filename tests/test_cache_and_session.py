"""
MemoryStore / fingerprint 與 GenerationSession 狀態機測試。
"""
import asyncio
from datetime import datetime

import pytest

from airis_codegen.cache import MemoryStore, fingerprint
from airis_codegen.config import GenerationConfig
from airis_codegen.models import BuildLog, GenerationSession, SessionState, build_status


class TestFingerprint:

    def test_key_order_independent(self):
        a = {"document": {"type": "FRAME", "name": "A"}}
        b = {"document": {"name": "A", "type": "FRAME"}}
        assert fingerprint(a, GenerationConfig()) == fingerprint(b, GenerationConfig())

    def test_config_changes_key(self):
        doc = {"document": {}}
        assert fingerprint(doc, GenerationConfig()) != fingerprint(doc, GenerationConfig(framework="vue"))

    def test_cyclic_document(self):
        node = {"children": []}
        node["children"].append(node)
        key = fingerprint(node, GenerationConfig())
        assert key == fingerprint(node, GenerationConfig())
        assert len(key) == 64


class TestMemoryStore:

    def test_set_then_get(self):
        async def run():
            store = MemoryStore()
            assert await store.get("k") is None
            assert await store.set("k", 1) is True
            return await store.get("k"), "k" in store, len(store)

        assert asyncio.run(run()) == (1, True, 1)

    def test_existing_entry_never_replaced(self):
        async def run():
            store = MemoryStore()
            await store.set("k", "first")
            replaced = await store.set("k", "second")
            return replaced, await store.get("k")

        assert asyncio.run(run()) == (False, "first")


class TestSession:

    def _session(self):
        return GenerationSession(id="gen_1_abc", config=GenerationConfig(), document={})

    def test_forward_transitions(self):
        session = self._session()
        for state in (SessionState.ANALYZING, SessionState.PLANNING, SessionState.SYNTHESIZING,
                      SessionState.ADAPTING, SessionState.ASSESSING, SessionState.OPTIMIZING,
                      SessionState.ASSEMBLING, SessionState.SUCCESS):
            session.advance(state)
        assert session.state == SessionState.SUCCESS

    def test_backward_transition_rejected(self):
        session = self._session()
        session.advance(SessionState.PLANNING)
        with pytest.raises(RuntimeError):
            session.advance(SessionState.ANALYZING)

    def test_failed_from_any_active_state(self):
        session = self._session()
        session.advance(SessionState.ADAPTING)
        session.advance(SessionState.FAILED)
        assert session.state == SessionState.FAILED

    def test_terminal_state_is_final(self):
        session = self._session()
        session.advance(SessionState.FAILED)
        with pytest.raises(RuntimeError):
            session.advance(SessionState.FAILED)


@pytest.mark.parametrize("levels, expected", [
    ([], "success"),
    (["info"], "success"),
    (["info", "warn"], "warning"),
    (["warn", "error"], "error"),
])
def test_build_status(levels, expected):
    logs = [BuildLog(datetime.now(), level, "m") for level in levels]
    assert build_status(logs) == expected
