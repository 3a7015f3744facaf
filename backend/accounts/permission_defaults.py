# accounts/permission_defaults.py

ROLE_DEFAULTS = {
    "CONTROLLER": {
        # Chart of accounts
        "accounting.view_account",
        "accounting.manage_chart",

        # Journal
        "accounting.view_journalentry",
        "accounting.post_entry",
        "accounting.reverse_entry",

        # Periods
        "accounting.view_period",
        "accounting.close_period",

        # Reports
        "accounting.view_reports",
    },
    "BOOKKEEPER": {
        "accounting.view_account",

        "accounting.view_journalentry",
        "accounting.post_entry",
        "accounting.reverse_entry",

        "accounting.view_period",
        "accounting.view_reports",
    },
    "VIEWER": {
        "accounting.view_account",
        "accounting.view_journalentry",
        "accounting.view_period",
        "accounting.view_reports",
    },
}


def all_permission_codes() -> set[str]:
    codes = set()
    for perms in ROLE_DEFAULTS.values():
        codes.update(perms)
    return codes
