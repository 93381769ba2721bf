from __future__ import annotations

from orgchart.models.employee import Role

# Index 0 is the top of the chart.
ROLE_ORDER: tuple[Role, ...] = (Role.DIRECTOR, Role.MANAGER, Role.TEAM_LEAD, Role.AGENT)


def level_of(role: Role) -> int:
    return ROLE_ORDER.index(role) + 1


def parent_role_of(role: Role) -> Role | None:
    index = ROLE_ORDER.index(role)
    if index == 0:
        return None
    return ROLE_ORDER[index - 1]


def child_role_of(role: Role) -> Role | None:
    index = ROLE_ORDER.index(role)
    if index == len(ROLE_ORDER) - 1:
        return None
    return ROLE_ORDER[index + 1]


def promotion_role_of(role: Role) -> Role | None:
    """Promotions move exactly one level up the chart."""
    return parent_role_of(role)
