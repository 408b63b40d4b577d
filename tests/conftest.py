import pytest
import tempfile
import shutil
from pathlib import Path
from typing import List

from sherpa.ai.adapter.base import BaseLLMAdapter
from sherpa.ai.models.common import (
    Message,
    MessageRole,
    StreamEvent,
    StreamEventType,
    TextPart,
    ToolCallPart,
)


@pytest.fixture
def temp_workspace():
    """Create a temporary directory for test files."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir).resolve()
    shutil.rmtree(temp_dir)


@pytest.fixture
def sample_repo(temp_workspace):
    """Create a sample git work tree for testing."""
    repo_root = temp_workspace / "sample_repo"
    repo_root.mkdir()

    # Create directory structure
    (repo_root / "src").mkdir()
    (repo_root / "src" / "utils").mkdir()
    (repo_root / "tests").mkdir()
    (repo_root / ".git").mkdir()
    (repo_root / "node_modules").mkdir()
    (repo_root / "build").mkdir()

    # Create files
    (repo_root / ".gitignore").write_text("node_modules/\nbuild/\n*.pyc\n")
    (repo_root / "README.md").write_text("# Sample Repository\n\nTest repository for sherpa")
    (repo_root / "setup.py").write_text("from setuptools import setup\n\nsetup(name='sample')")
    (repo_root / "src" / "__init__.py").write_text("")
    (repo_root / "src" / "main.py").write_text("def main():\n    print('Hello, World!')")
    (repo_root / "src" / "main.pyc").write_bytes(b"\x00\x01")
    (repo_root / "src" / "utils" / "helpers.py").write_text("def helper():\n    return 42")
    (repo_root / "tests" / "test_main.py").write_text("def test_main():\n    assert True")
    (repo_root / ".git" / "config").write_text("[core]\n    repositoryformatversion = 0")
    (repo_root / "node_modules" / "package.json").write_text('{"name": "test"}')
    (repo_root / "build" / "out.txt").write_text("artifact")

    return repo_root


class ScriptedAdapter(BaseLLMAdapter):
    """Model stand-in that replays scripted assistant turns.

    Each turn is a list of text chunks and ``(tool_name, args)`` tuples.
    Every call records the messages it was given.
    """

    def __init__(self, turns: List[list], fail_on_turn: int = None):
        super().__init__(model="scripted")
        self.turns = list(turns)
        self.fail_on_turn = fail_on_turn
        self.calls: List[List[Message]] = []
        self.tool_names: List[List[str]] = []

    async def stream_completion(self, messages, tools):
        self.calls.append(list(messages))
        self.tool_names.append([tool.name for tool in tools])
        turn_number = len(self.calls)

        if self.fail_on_turn == turn_number:
            yield StreamEvent(event_type=StreamEventType.CONTENT_DELTA, delta="partial ")
            raise RuntimeError("upstream connection reset")

        turn = self.turns.pop(0) if self.turns else ["done"]
        parts = []
        for index, item in enumerate(turn):
            if isinstance(item, str):
                yield StreamEvent(event_type=StreamEventType.CONTENT_DELTA, delta=item)
                parts.append(TextPart(text=item))
            else:
                name, args = item
                parts.append(ToolCallPart(
                    tool_call_id=f"turn{turn_number}_call{index}", tool_name=name, args=args
                ))

        yield StreamEvent(
            event_type=StreamEventType.MESSAGE_STOP,
            message=Message(role=MessageRole.ASSISTANT, content=parts),
        )


@pytest.fixture
def scripted_adapter():
    """Factory for scripted model adapters."""
    return ScriptedAdapter
