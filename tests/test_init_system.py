from sqlalchemy.orm import sessionmaker

from leave_system.core.config import settings
from leave_system.core.init_system import init_system_data
from leave_system.services.account_store import AccountStore


def _factory(db_session):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_session.get_bind())


def test_bootstrap_admin_created_on_empty_table(db_session, monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin", True)
    init_system_data(session_factory=_factory(db_session))

    admin = AccountStore(db_session).get(settings.bootstrap_admin_id)
    assert admin.is_admin
    assert AccountStore(db_session).password_of(admin) == settings.bootstrap_admin_password


def test_bootstrap_skipped_when_accounts_exist(db_session, employee_account, monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin", True)
    init_system_data(session_factory=_factory(db_session))

    assert [a.employee_id for a in AccountStore(db_session).list_accounts()] == ["EMP001"]


def test_bootstrap_disabled(db_session):
    init_system_data(session_factory=_factory(db_session))
    assert AccountStore(db_session).list_accounts() == []
