"""Tests for aim.env: variables containers and capability checks."""

from typing import Protocol

import pytest

from aim.env import (
    EmptyEnv,
    Env,
    check_capabilities,
    container_type,
    required_capabilities,
    requires,
    satisfies,
)
from aim.errors import ConfigurationError


class AuthEnv(Env):
    user_id: str | None = None


class TenantEnv(AuthEnv):
    tenant: str = "default"


class HasUser(Protocol):
    user_id: str | None


class HasTrace(Protocol):
    trace_id: str


class TestEnv:
    def test_repr_lists_instance_fields(self) -> None:
        env = AuthEnv()
        env.user_id = "u1"
        assert repr(env) == "AuthEnv(user_id='u1')"

    def test_empty_env_is_env(self) -> None:
        assert isinstance(EmptyEnv(), Env)


class TestRequires:
    def test_declares_capabilities(self) -> None:
        @requires(AuthEnv)
        async def mw(c, next) -> None:
            await next()

        assert required_capabilities(mw) == (AuthEnv,)

    def test_stacked_declarations_accumulate(self) -> None:
        @requires(HasTrace)
        @requires(HasUser)
        async def mw(c, next) -> None:
            await next()

        assert required_capabilities(mw) == (HasUser, HasTrace)

    def test_class_level_declaration(self) -> None:
        @requires(AuthEnv)
        class Gate:
            async def __call__(self, c, next) -> None:
                await next()

        assert required_capabilities(Gate()) == (AuthEnv,)

    def test_undeclared_middleware_has_none(self) -> None:
        async def mw(c, next) -> None:
            await next()

        assert required_capabilities(mw) == ()


class TestContainerType:
    def test_class_factory(self) -> None:
        assert container_type(AuthEnv) is AuthEnv

    def test_annotated_function_factory(self) -> None:
        def make() -> TenantEnv:
            return TenantEnv()

        assert container_type(make) is TenantEnv

    def test_unannotated_factory_is_unknown(self) -> None:
        assert container_type(lambda: AuthEnv()) is None


class TestSatisfies:
    def test_subclass(self) -> None:
        assert satisfies(TenantEnv, AuthEnv)
        assert not satisfies(EmptyEnv, AuthEnv)

    def test_protocol_by_members(self) -> None:
        assert satisfies(AuthEnv, HasUser)
        assert not satisfies(AuthEnv, HasTrace)


class TestCheckCapabilities:
    def test_passes_when_provided(self) -> None:
        @requires(HasUser)
        async def mw(c, next) -> None:
            await next()

        check_capabilities(TenantEnv, (mw,))

    def test_missing_capability_names_middleware(self) -> None:
        @requires(AuthEnv)
        async def authenticate(c, next) -> None:
            await next()

        with pytest.raises(ConfigurationError, match="authenticate"):
            check_capabilities(EmptyEnv, (authenticate,))

    def test_unknown_factory_type_is_not_checked(self) -> None:
        @requires(AuthEnv)
        async def mw(c, next) -> None:
            await next()

        check_capabilities(lambda: EmptyEnv(), (mw,))
