"""Tests for the exception hierarchy."""

import pytest

from neo_access.core.exceptions import (
    AlreadyExistsError,
    CacheConnectionError,
    CacheError,
    CapabilityNotFoundError,
    CircularRoleInheritanceError,
    ConfigurationError,
    EntityNotFoundError,
    FeatureAccessError,
    GuardMismatchError,
    NeoAccessError,
    PermissionAlreadyExistsError,
    PermissionNotFoundError,
    RoleAlreadyExistsError,
    RoleNotFoundError,
    StoreError,
    UnauthorizedError,
    create_error_response,
)


class TestBaseError:
    """Test the common error contract."""

    def test_defaults(self):
        """Test error code defaults to the class name and details to a dict."""
        error = NeoAccessError("boom")

        assert error.message == "boom"
        assert error.error_code == "NeoAccessError"
        assert error.details == {}
        assert str(error) == "boom"

    def test_error_response(self):
        """Test the structured error envelope."""
        response = create_error_response(RoleNotFoundError.with_name("admin", "web"))

        assert response["error"]["code"] == "RoleNotFoundError"
        assert response["error"]["category"] == "not_found"
        assert response["error"]["fatal"] is False
        assert response["error"]["entity_type"] == "role"
        assert response["error"]["details"] == {"name": "admin", "guard": "web"}
        assert "admin" in response["error"]["message"]

    @pytest.mark.parametrize("error,category,fatal", [
        (CircularRoleInheritanceError(["a", "a"]), "configuration", True),
        (PermissionAlreadyExistsError("edit", "web"), "configuration", True),
        (FeatureAccessError("beta"), "configuration", True),
        (UnauthorizedError("user:1", ["edit"]), "access", False),
        (CacheConnectionError("down"), "cache", False),
        (StoreError("down"), "store", False),
        (NeoAccessError("boom"), "internal", False),
    ])
    def test_error_families(self, error, category, fatal):
        """Test each family reports its category and whether it is fatal."""
        body = create_error_response(error)["error"]

        assert body["category"] == category
        assert body["fatal"] is fatal

    def test_envelope_without_entity(self):
        """Test errors that are not about one entity omit the entity type."""
        body = create_error_response(StoreError("down", details={"schema": "public"}))["error"]

        assert "entity_type" not in body
        assert body["details"] == {"schema": "public"}

    @pytest.mark.parametrize("error_cls,parent", [
        (CircularRoleInheritanceError, ConfigurationError),
        (GuardMismatchError, ConfigurationError),
        (PermissionAlreadyExistsError, AlreadyExistsError),
        (AlreadyExistsError, ConfigurationError),
        (PermissionNotFoundError, EntityNotFoundError),
        (CacheConnectionError, CacheError),
        (StoreError, NeoAccessError),
        (FeatureAccessError, NeoAccessError),
    ])
    def test_hierarchy(self, error_cls, parent):
        """Test each error sits under its family."""
        assert issubclass(error_cls, parent)


class TestDomainErrors:
    """Test the domain error constructors."""

    def test_circular_inheritance(self):
        """Test the cycle is kept and rendered in order."""
        error = CircularRoleInheritanceError(["a", "b", "a"], guard="web")

        assert error.cycle == ["a", "b", "a"]
        assert "a -> b -> a" in error.message
        assert error.details["guard"] == "web"

    @pytest.mark.parametrize("factory,entity_type", [
        (GuardMismatchError.for_permission, "permission"),
        (GuardMismatchError.for_role, "role"),
        (GuardMismatchError.for_capability, "capability"),
    ])
    def test_guard_mismatch(self, factory, entity_type):
        """Test the per-entity guard mismatch constructors."""
        error = factory("edit", "api", "web")

        assert error.entity_type == entity_type
        assert error.entity_guard == "api"
        assert error.expected_guard == "web"
        assert f"{entity_type} 'edit'" in error.message

    def test_already_exists(self):
        """Test duplicate errors name the entity and guard."""
        error = RoleAlreadyExistsError("admin", "web")

        assert error.name == "admin"
        assert "role 'admin' already exists for guard 'web'" in error.message

    def test_not_found_by_name_and_id(self):
        """Test lookup errors by name and by id."""
        by_name = CapabilityNotFoundError.with_name("billing")
        by_id = PermissionNotFoundError.with_id(42, "api")

        assert isinstance(by_name, CapabilityNotFoundError)
        assert "capability named 'billing'" in by_name.message
        assert by_id.details == {"id": "42", "guard": "api"}
        assert "for guard 'api'" in by_id.message

    def test_unauthorized(self):
        """Test the missing permissions are listed."""
        error = UnauthorizedError("user:1", ["posts.edit", "posts.delete"])

        assert error.permissions == ["posts.edit", "posts.delete"]
        assert "posts.edit, posts.delete" in error.message

    def test_feature_access(self):
        """Test the feature name is kept."""
        error = FeatureAccessError("beta")

        assert error.feature == "beta"
        assert error.details == {"feature": "beta"}
