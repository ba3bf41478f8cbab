"""
Exceptions raised by the tab server.

Each carries the HTTP status the web app answers with.
"""


class TabServerError(Exception):
    status = 500


class WrongPasswordError(TabServerError):
    status = 400

    def __init__(self):
        super().__init__("wrong password")


class PasswordNotSetError(TabServerError):
    status = 403

    def __init__(self):
        super().__init__("no admin password has been set (run 'tabs.py set-password')")


class TabNotFoundError(TabServerError):
    status = 404

    def __init__(self, tab_id: str):
        self.tab_id = tab_id
        super().__init__(f"no tab with ID {tab_id!r}")


class InvalidSettingsError(TabServerError):
    status = 400
