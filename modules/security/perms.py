# modules/security/perms.py
from typing import Dict, List, Set, Tuple

DEFAULT_PERMS: List[Tuple[str, str]] = [
    ("users.manage", "Manage user accounts and status"),
    ("staff.view", "View supervisors, secretaries, operators and managers"),
    ("staff.manage", "Register and approve staff"),
    ("locations.manage", "Manage locations and beats"),
    ("assignments.manage", "Create and approve guard assignments"),
    ("payroll.view", "View salary records"),
    ("payroll.manage", "Create, approve and pay salaries"),
    ("alerts.approve", "Approve and send emergency alerts"),
    ("incidents.review", "Review incident reports"),
    ("maintenance.run", "Run data maintenance routines"),
]

ALL_PERMS: Set[str] = {code for code, _ in DEFAULT_PERMS}

# roles missing here (OPERATOR) only get what the routes allow every signed-in user
ROLE_PERMS: Dict[str, Set[str]] = {
    "DEVELOPER": set(ALL_PERMS),
    "DIRECTOR": set(ALL_PERMS),
    "ADMIN": set(ALL_PERMS),
    "MANAGER": {
        "staff.view", "staff.manage", "locations.manage", "assignments.manage",
        "payroll.view", "payroll.manage", "alerts.approve", "incidents.review",
    },
    "SECRETARY": {"staff.view", "payroll.view", "payroll.manage"},
    "GENERAL_SUPERVISOR": {"staff.view", "staff.manage", "assignments.manage", "alerts.approve", "incidents.review"},
    "SUPERVISOR": {"staff.view", "assignments.manage", "incidents.review"},
}

# viewers in these roles never see director pay
DIRECTOR_PAY_HIDDEN_FROM: Set[str] = {"SECRETARY", "MANAGER"}


def compute_role_perms(role: str) -> Set[str]:
    return set(ROLE_PERMS.get((role or "").upper(), set()))


def has_perm(role: str, code: str) -> bool:
    return code in compute_role_perms(role)
