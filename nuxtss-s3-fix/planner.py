"""
Nuxt S3 Fix - Layout Planner
Decides which COPY and REMOVE actions converge each route onto the target layout.

plan_copy_actions and plan_remove_actions are pure: they look only at one key
triple, the existence map and the target layout. LayoutPlanner runs them over
every route of a report and folds the results in.
"""

from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from commands import CommandFormatter
from layout import Presence, is_converged, is_target_layout, presence
from logger import Logger, NullLogger
from models import Action, CommandStatus, CommandType, KeyTriple, Layout
from report import LayoutReport


# --- Copy ---------------------------------------------------------------

def _copy_source(triple: KeyTriple, state: Presence) -> Optional[Tuple[str, Layout]]:
    """Source for the `same` target. Index wins over flat when both exist."""
    if state.index:
        return triple.index, Layout.INDEX
    if state.flat:
        return triple.flat, Layout.FLAT
    return None


def _index_source(triple: KeyTriple, state: Presence) -> Optional[Tuple[str, Layout]]:
    """Source for the `index` target in the double layout."""
    if state.same:
        return triple.same, Layout.SINGLE
    if state.flat:
        return triple.flat, Layout.FLAT
    return None


def _copy_to(
    triple: KeyTriple,
    target_key: str,
    target_exists: bool,
    source: Optional[Tuple[str, Layout]],
    state: Presence,
    target_layout: Layout
) -> Action:
    if target_exists:
        status = (CommandStatus.LAYOUT_OPTIMIZED if is_converged(state, target_layout)
                  else CommandStatus.TARGET_EXISTS)
        return Action(CommandType.COPY, status, route=triple.route,
                      target_key=target_key, target_layout=target_layout)
    if source is None:
        return Action(CommandType.COPY, CommandStatus.NO_SOURCE, route=triple.route,
                      target_key=target_key, target_layout=target_layout)
    source_key, source_layout = source
    return Action(
        CommandType.COPY,
        CommandStatus.GENERATED,
        route=triple.route,
        target_key=target_key,
        source_key=source_key,
        target_layout=target_layout,
        source_layout=source_layout,
    )


def plan_copy_actions(
    triple: KeyTriple,
    existence: Dict[str, bool],
    target_layout: Layout
) -> List[Action]:
    """
    Plan the copies that bring one route to the target layout.

    Args:
        triple: Keys for the route.
        existence: key -> exists in bucket.
        target_layout: Layout.SINGLE or Layout.DOUBLE.

    Returns:
        One action (SINGLE, target `same`) or two actions (DOUBLE, targets
        `same` then `index`). A single ERROR_KEYS_UNDEFINED action when the
        triple is incomplete, and nothing for an unsupported target.
    """
    if not is_target_layout(target_layout):
        return []
    if not triple.is_complete():
        return [Action(CommandType.COPY, CommandStatus.ERROR_KEYS_UNDEFINED,
                       route=triple.route, target_key=triple.same,
                       target_layout=target_layout)]

    state = presence(triple, existence)
    actions = [
        _copy_to(triple, triple.same, state.same,
                 _copy_source(triple, state), state, target_layout)
    ]
    if target_layout == Layout.DOUBLE:
        actions.append(
            _copy_to(triple, triple.index, state.index,
                     _index_source(triple, state), state, target_layout)
        )
    return actions


# --- Remove -------------------------------------------------------------

def _remove(triple: KeyTriple, key: str, key_layout: Layout, target_layout: Layout) -> Action:
    return Action(
        CommandType.REMOVE,
        CommandStatus.GENERATED,
        route=triple.route,
        target_key=key,
        source_key=triple.same,
        target_layout=target_layout,
        source_layout=key_layout,
    )


def _unsafe_removals(triple: KeyTriple, state: Presence, target_layout: Layout) -> List[Action]:
    """Without `same` nothing may be removed; every candidate is NO_SOURCE."""
    present = [key for key, exists in ((triple.flat, state.flat), (triple.index, state.index)) if exists]
    if not present:
        present = [None]
    return [
        Action(CommandType.REMOVE, CommandStatus.NO_SOURCE, route=triple.route,
               target_key=key, target_layout=target_layout)
        for key in present
    ]


def plan_remove_actions(
    triple: KeyTriple,
    existence: Dict[str, bool],
    target_layout: Layout
) -> List[Action]:
    """
    Plan the removals of redundant objects for one route.

    A REMOVE is generated only for the flat or index key, and only while the
    `same` key exists. In the double layout the index key is required and is
    never removed.

    Returns:
        Zero to two GENERATED removes, or informational actions explaining
        why nothing is removed.
    """
    if not is_target_layout(target_layout):
        return []
    if not triple.is_complete():
        return [Action(CommandType.REMOVE, CommandStatus.ERROR_KEYS_UNDEFINED,
                       route=triple.route, target_layout=target_layout)]

    state = presence(triple, existence)
    if not state.same:
        return _unsafe_removals(triple, state, target_layout)

    actions: List[Action] = []
    if state.flat:
        actions.append(_remove(triple, triple.flat, Layout.FLAT, target_layout))

    if target_layout == Layout.SINGLE:
        if state.index:
            actions.append(_remove(triple, triple.index, Layout.INDEX, target_layout))
        if not actions:
            actions.append(Action(CommandType.REMOVE, CommandStatus.LAYOUT_OPTIMIZED,
                                  route=triple.route, source_key=triple.same,
                                  target_layout=target_layout, source_layout=Layout.SINGLE))
        return actions

    if state.index:
        actions.append(Action(CommandType.REMOVE, CommandStatus.LAYOUT_OPTIMIZED,
                              route=triple.route, target_key=triple.index,
                              source_key=triple.same, target_layout=target_layout,
                              source_layout=Layout.SINGLE))
    elif not actions:
        actions.append(Action(CommandType.REMOVE, CommandStatus.NO_TARGET,
                              route=triple.route, source_key=triple.same,
                              target_layout=target_layout, source_layout=Layout.SINGLE))
    return actions


# --- Passes -------------------------------------------------------------

class LayoutPlanner:
    """
    Runs the copy and remove passes for every route in a report.

    The remove pass only runs when the copy pass left at least one route
    without a generated copy; otherwise no `same` object exists yet and
    every removal would be unsafe.
    """

    def __init__(
        self,
        report: LayoutReport,
        formatter: Optional[CommandFormatter] = None,
        log: Optional[Logger] = None
    ):
        self.report = report
        self.formatter = formatter or CommandFormatter(report.bucket_uri, report.region)
        self.log = log or NullLogger()

    def _supported(self, pass_name: str) -> bool:
        target = self.report.target_layout
        if is_target_layout(target):
            return True
        name = target.value if isinstance(target, Layout) else target
        self.log.warn(f"Unsupported target layout '{name}', skipping {pass_name} pass")
        return False

    def _render(self, action: Action) -> Action:
        if action.is_generated:
            return replace(action, command=self.formatter.render(action))
        return action

    def _log_action(self, action: Action) -> None:
        if action.status == CommandStatus.ERROR_KEYS_UNDEFINED:
            self.log.error(f"Undefined keys for route '{action.route}', skipping")
        elif action.status == CommandStatus.NO_SOURCE and action.command_type == CommandType.COPY:
            self.log.warn(f"No sources found for target: {action.target_key} skipping")
        else:
            self.log.debug(action.describe())

    def run_copy_pass(self) -> List[Action]:
        """Plan copies for every route and record them in the report."""
        if not self._supported('COPY'):
            return []
        planned: List[Action] = []
        for triple in self.report.triples:
            actions = [self._render(a) for a in
                       plan_copy_actions(triple, self.report.existence, self.report.target_layout)]
            for action in actions:
                self._log_action(action)
            self.report.record_copy(actions)
            planned.extend(actions)
        return planned

    def run_remove_pass(self) -> List[Action]:
        """Plan removals for every route and record them in the report."""
        if not self._supported('REMOVE'):
            return []
        self.report.remove_pass_run = True
        planned: List[Action] = []
        for triple in self.report.triples:
            actions = [self._render(a) for a in
                       plan_remove_actions(triple, self.report.existence, self.report.target_layout)]
            for action in actions:
                self._log_action(action)
            self.report.record_remove(actions)
            planned.extend(actions)
        return planned

    def needs_remove_pass(self) -> bool:
        """False when every complete route already received a generated copy."""
        complete = [t for t in self.report.triples if t.is_complete()]
        if not complete:
            return False
        copied = {a.route for a in self.report.copy_generated}
        return not all(t.route in copied for t in complete)

    def plan(self) -> LayoutReport:
        """Run both passes and return the filled report."""
        self.log.info("Checking S3 bucket for COPY optimization commands")
        self.run_copy_pass()
        if self.needs_remove_pass():
            self.log.info("Checking S3 bucket for REMOVE optimization commands")
            self.run_remove_pass()
        else:
            self.log.info("Every path needs COPY actions first, REMOVE pass skipped")
        return self.report
