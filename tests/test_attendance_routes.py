"""
Attendance route wiring tests.

Goal: deleting redemption / NES records is an admin action, recording stays
open to scoped users, and listing accepts a comma-separated id filter.
"""
import pytest
from fastapi.routing import APIRoute

from beneficiary_api.dependencies.auth import get_actor, get_admin_actor
from beneficiary_api.routes import nes, redemptions


def _routes(router):
    return {
        (method, route.path): route
        for route in router.routes
        if isinstance(route, APIRoute)
        for method in route.methods
    }


def _dependency_calls(route):
    return {dependency.call for dependency in route.dependant.dependencies}


@pytest.mark.parametrize("router", [redemptions.router, nes.router])
def test_attendance_route_permissions(router):
    routes = _routes(router)

    assert get_admin_actor in _dependency_calls(routes[("DELETE", "/{record_id}")])
    assert get_actor in _dependency_calls(routes[("PUT", "/")])
    assert get_actor in _dependency_calls(routes[("GET", "/")])

    query_params = {param.name for param in routes[("GET", "/")].dependant.query_params}
    assert "beneficiary_ids" in query_params
