"""
Bundled filesystem tool provider.

Serves three MCP tools over a single allowed root directory:

- ``read_files``: line-numbered file contents, errors reported per path
- ``tree``: ignore-aware directory tree of a path under the root
- ``list_allowed_directories``: the resolved root itself
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from mcp import types
from mcp.server.lowlevel import Server
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..core.errors import PathAccessError
from ..utils.logging_config import get_logger
from ..utils.path_utils import PathUtils
from ..utils.tree_builder import TreeResolver

logger = get_logger(__name__)

SERVER_NAME = "secure-filesystem-server"


class ReadFilesArgs(BaseModel):
    paths: List[str] = Field(description="Paths of the files to read, relative to the allowed directory or absolute")


class TreeArgs(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    path: str = Field(description="Directory to render")
    max_depth: Optional[int] = Field(
        default=None,
        alias="maxDepth",
        description="Levels of entries to list; null for the full tree",
    )


class ListAllowedDirectoriesArgs(BaseModel):
    pass


def _input_schema(model: type) -> Dict[str, Any]:
    schema = model.model_json_schema(by_alias=True)
    schema.setdefault("properties", {})
    return schema


class FilesystemToolProvider:
    """Filesystem tools confined to one allowed directory."""

    TOOLS = {
        "read_files": (
            ReadFilesArgs,
            "Read the contents of one or more files. Each file is returned "
            "wrapped in a tag naming its path, with every line prefixed by "
            "its 1-based line number (L1:, L2:, ...). A path that cannot be "
            "read yields an inline error and does not affect the others.",
        ),
        "tree": (
            TreeArgs,
            "Show the directory tree of a path, honoring .gitignore files. "
            "Use maxDepth to limit how many levels are listed.",
        ),
        "list_allowed_directories": (
            ListAllowedDirectoriesArgs,
            "Return the directory this server is allowed to access.",
        ),
    }

    def __init__(self, allowed_directory: Union[str, Path], tree_resolver: Optional[TreeResolver] = None):
        root = PathUtils.resolve_root(allowed_directory)
        if not root.is_dir():
            raise PathAccessError(f"Allowed directory does not exist or is not a directory: {root}")
        self.root = root
        self.tree_resolver = tree_resolver or TreeResolver()

    def tool_definitions(self) -> List[types.Tool]:
        return [
            types.Tool(name=name, description=description, inputSchema=_input_schema(args_model))
            for name, (args_model, description) in self.TOOLS.items()
        ]

    # Tool implementations

    def list_allowed_directories(self) -> str:
        return f"Allowed directory:\n{self.root}"

    def _read_one(self, requested: str) -> str:
        try:
            real_path = PathUtils.validate_path(requested, self.root)
            content = real_path.read_text(encoding="utf-8")
        except (OSError, ValueError) as e:
            # PathAccessError is an OSError; UnicodeDecodeError is a ValueError
            logger.debug(f"read_files: {requested} failed: {e}")
            return f"{requested}: Error - {e}"

        numbered = "\n".join(f"L{number}: {line}" for number, line in enumerate(content.split("\n"), 1))
        return f"<{requested}>\n{numbered}\n</{requested}>"

    async def read_files(self, paths: List[str]) -> str:
        """Read every path concurrently; results keep the input order."""
        results = await asyncio.gather(*(asyncio.to_thread(self._read_one, path) for path in paths))
        return "\n\n".join(results)

    async def tree(self, path: str, max_depth: Optional[int] = None) -> str:
        """
        Render the tree under ``path``.

        Raises:
            PathAccessError: Path escapes the allowed directory
            NotADirectoryError: Path is not a directory
        """
        real_path = PathUtils.validate_path(path, self.root)
        if not real_path.is_dir():
            raise NotADirectoryError(f"Not a directory: {path}")
        return await asyncio.to_thread(self.tree_resolver.render_flat, real_path, max_depth)

    async def dispatch(self, name: str, arguments: Optional[Dict[str, Any]]) -> str:
        """
        Validate ``arguments`` and run tool ``name``.

        Raises:
            ValueError: Unknown tool or invalid arguments
        """
        if name not in self.TOOLS:
            raise ValueError(f"Unknown tool: {name}")

        args_model = self.TOOLS[name][0]
        try:
            args = args_model.model_validate(arguments or {})
        except ValidationError as e:
            raise ValueError(f"Invalid arguments for {name}: {e}") from e

        if isinstance(args, ReadFilesArgs):
            return await self.read_files(args.paths)
        if isinstance(args, TreeArgs):
            return await self.tree(args.path, args.max_depth)
        return self.list_allowed_directories()

    def create_server(self) -> Server:
        """MCP server exposing this provider's tools."""
        server = Server(SERVER_NAME)

        @server.list_tools()
        async def list_tools() -> List[types.Tool]:
            return self.tool_definitions()

        @server.call_tool()
        async def call_tool(name: str, arguments: Dict[str, Any]) -> List[types.TextContent]:
            # Raised errors are returned to the client as isError results
            text = await self.dispatch(name, arguments)
            return [types.TextContent(type="text", text=text)]

        return server


def create_filesystem_server(allowed_directory: Union[str, Path]) -> Server:
    """Build the filesystem MCP server for ``allowed_directory``."""
    return FilesystemToolProvider(allowed_directory).create_server()
