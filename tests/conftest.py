"""
Shared fixtures for schemagraph tests.
"""

import pytest

from schemagraph import Caller, a


@pytest.fixture
def company_schema():
    """Company/Employee pair joined by an explicit companyId foreign key."""
    return a.schema({
        "Company": a.model({
            "name": a.string().required(),
            "employees": a.has_many("Employee", "companyId"),
        }),
        "Employee": a.model({
            "name": a.string().required(),
            "companyId": a.id(),
            "company": a.belongs_to("Company", "companyId"),
        }),
    }).authorization(lambda allow: [allow.authenticated()])


@pytest.fixture
def todo_graph():
    """Owner-only Todo whose `secret` is readable by guests."""
    return a.schema({
        "Todo": a.model({
            "content": a.string(),
            "secret": a.string().authorization(lambda allow: [allow.guest().to(["read"])]),
        }).authorization(lambda allow: [allow.owner()]),
    }).build()


@pytest.fixture
def alice():
    return Caller.user("alice")


@pytest.fixture
def bob():
    return Caller.user("bob", groups=["Admin"])


@pytest.fixture
def guest():
    return Caller.guest()


@pytest.fixture
def api_key():
    return Caller.api_key()
