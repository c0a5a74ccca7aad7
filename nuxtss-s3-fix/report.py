"""
Nuxt S3 Fix - Report
Accumulates planned, skipped and executed actions across all routes of a run.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, List, Optional

from keys import flatten_keys
from models import Action, CommandStatus, CommandType, KeyTriple, Layout


@dataclass
class LayoutReport:
    """Everything planned for one bucket."""
    bucket_uri: str
    region: Optional[str] = None
    sitemap_locator: str = ""
    target_layout: Layout = Layout.SINGLE

    routes: List[str] = field(default_factory=list)
    routes_excluded: List[str] = field(default_factory=list)
    triples: List[KeyTriple] = field(default_factory=list)
    existence: Dict[str, bool] = field(default_factory=dict)

    copy_generated: List[Action] = field(default_factory=list)
    copy_skipped: List[Action] = field(default_factory=list)
    remove_generated: List[Action] = field(default_factory=list)
    remove_skipped: List[Action] = field(default_factory=list)
    remove_pass_run: bool = False

    copy_flats: int = 0
    copy_indexes: int = 0
    copy_sames: int = 0
    remove_flats: int = 0
    remove_indexes: int = 0

    # Execution outcomes, filled by the caller after planning
    executed: List[Action] = field(default_factory=list)
    failed: List[Action] = field(default_factory=list)
    not_executed: List[Action] = field(default_factory=list)

    @property
    def keys(self) -> List[str]:
        return flatten_keys(self.triples)

    @property
    def route_count(self) -> int:
        return len(self.routes)

    @property
    def key_count(self) -> int:
        return len(self.keys)

    @property
    def generated(self) -> List[Action]:
        return self.copy_generated + self.remove_generated

    @property
    def skipped(self) -> List[Action]:
        return self.copy_skipped + self.remove_skipped

    def record_copy(self, actions: Iterable[Action]) -> None:
        for action in actions:
            if not action.is_generated:
                self.copy_skipped.append(action)
                continue
            self.copy_generated.append(action)
            if action.source_layout == Layout.FLAT:
                self.copy_flats += 1
            elif action.source_layout == Layout.INDEX:
                self.copy_indexes += 1
            else:
                self.copy_sames += 1

    def record_remove(self, actions: Iterable[Action]) -> None:
        for action in actions:
            if not action.is_generated:
                self.remove_skipped.append(action)
                continue
            self.remove_generated.append(action)
            if action.source_layout == Layout.FLAT:
                self.remove_flats += 1
            else:
                self.remove_indexes += 1

    def record_execution(self, action: Action, success: bool) -> None:
        if success:
            self.executed.append(action)
        else:
            self.failed.append(_with_status(action, CommandStatus.ERROR))

    def record_not_executed(self, action: Action) -> None:
        self.not_executed.append(_with_status(action, CommandStatus.SKIPPED))

    def summary(self) -> str:
        """Return a summary of planned actions."""
        return (
            f"Layout Plan ({self.target_layout.value.upper()}): "
            f"{self.route_count} paths, {self.key_count} keys, "
            f"{len(self.copy_generated)} copies, "
            f"{len(self.remove_generated)} removes, "
            f"{len(self.skipped)} skipped"
        )


def _with_status(action: Action, status: CommandStatus) -> Action:
    return replace(action, status=status)


def optimized_routes(actions: Iterable[Action]) -> int:
    """Routes with a LAYOUT_OPTIMIZED action and no GENERATED action."""
    optimized = set()
    touched = set()
    for action in actions:
        if action.is_generated:
            touched.add(action.route)
        elif action.status == CommandStatus.LAYOUT_OPTIMIZED:
            optimized.add(action.route)
    return len(optimized - touched)
