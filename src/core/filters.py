"""
Event filtering and per-type visibility toggles.
"""

from core.config import PROJECT_NONE, VISIBILITY_GROUPS
from models.events import CalendarEvent, EventType, FilterOptions, ViewFilters


def visibility_group(event_type: EventType) -> str | None:
    """User-facing toggle group an event type belongs to."""
    for group, types in VISIBILITY_GROUPS.items():
        if event_type.value in types:
            return group
    return None


def is_hidden(event: CalendarEvent, hidden_types: set[str]) -> bool:
    """Hidden if its group is toggled off (a raw type value is accepted too)."""
    if event.type.value in hidden_types:
        return True
    return visibility_group(event.type) in hidden_types


def is_org_wide(event: CalendarEvent) -> bool:
    """Public holidays belong to nobody and survive team/user filters."""
    return event.type == EventType.PUBLIC_HOLIDAY and event.owner_id is None


def matches_project(event: CalendarEvent, project_id: int | str | None) -> bool:
    """Project filter; only external tasks carry a project."""
    if project_id is None or event.type != EventType.EXTERNAL_TASK:
        return True
    task_project = event.metadata.get("projectId")
    if project_id == PROJECT_NONE:
        return not task_project
    return str(task_project) == str(project_id)


def apply_filters(
    events: list[CalendarEvent],
    filters: ViewFilters,
    hidden_types: set[str],
    options: FilterOptions | None = None,
) -> list[CalendarEvent]:
    """
    Apply visibility toggles and the team/user/project filters.

    Every rule is an independent predicate; an event is kept only if all pass.
    Team membership comes from the filters endpoint, not from the events.
    """
    team_members: set[int] | None = None
    if filters.team_id is not None:
        team_members = options.members_of(filters.team_id) if options else set()

    kept = []
    for event in events:
        if is_hidden(event, hidden_types):
            continue

        if team_members is not None and not is_org_wide(event):
            if event.owner_id not in team_members:
                continue

        if filters.user_id is not None and not is_org_wide(event):
            if event.owner_id != filters.user_id:
                continue

        if not matches_project(event, filters.project_id):
            continue

        kept.append(event)

    return kept


def reconcile_filters(filters: ViewFilters, options: FilterOptions) -> ViewFilters:
    """
    Drop a user filter that cannot coexist with the selected team.

    Returns a new ViewFilters; the input is not modified.
    """
    if filters.team_id is None or filters.user_id is None:
        return ViewFilters(filters.team_id, filters.user_id, filters.project_id)
    if filters.user_id in options.members_of(filters.team_id):
        return ViewFilters(filters.team_id, filters.user_id, filters.project_id)
    return ViewFilters(filters.team_id, None, filters.project_id)


def team_members(team_id: int | None, options: FilterOptions) -> list:
    """Users offered by the user picker for the selected team (all users if none)."""
    if team_id is None:
        return list(options.users)
    member_ids = options.members_of(team_id)
    return [user for user in options.users if user.id in member_ids]
