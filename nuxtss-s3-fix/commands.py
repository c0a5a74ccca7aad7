"""
Nuxt S3 Fix - Command Formatter
Renders planned actions as AWS CLI command strings.
"""

from typing import List, Optional

from models import Action, CommandType


DEFAULT_TOOL = "aws s3"


class CommandFormatter:
    """
    Renders GENERATED actions for one bucket.

    Formats:
        <tool> cp <bucket_uri>/<source> <bucket_uri>/<target>
        <tool> rm <bucket_uri>/<target>
    A region, when set, is passed as a trailing --region option.
    """

    def __init__(self, bucket_uri: str, region: Optional[str] = None, tool: str = DEFAULT_TOOL):
        self.bucket_uri = bucket_uri.rstrip('/')
        self.region = region
        self.tool = tool

    def _uri(self, key: str) -> str:
        return f"{self.bucket_uri}/{key}"

    def _suffix(self) -> str:
        return f" --region {self.region}" if self.region else ""

    def render_copy(self, source_key: str, target_key: str) -> str:
        return f"{self.tool} cp {self._uri(source_key)} {self._uri(target_key)}{self._suffix()}"

    def render_remove(self, target_key: str) -> str:
        return f"{self.tool} rm {self._uri(target_key)}{self._suffix()}"

    def render(self, action: Action) -> Optional[str]:
        """Command for a GENERATED action, None for any other status."""
        if not action.is_generated:
            return None
        if action.command_type == CommandType.COPY:
            return self.render_copy(action.source_key, action.target_key)
        return self.render_remove(action.target_key)


def render_script(actions: List[Action]) -> str:
    """Join rendered commands, one per line, for console output or a file."""
    return "".join(f"{a.command}\n" for a in actions if a.command)
