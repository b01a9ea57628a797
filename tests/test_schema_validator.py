"""
Tests for the schema validator module.
"""

import unittest
from datetime import datetime
from unittest import mock

from community_schema.config import Settings
from community_schema.schema import build_registry
from community_schema.schema.validator import SchemaValidator


class TestSchemaValidator(unittest.TestCase):
    """Test cases for the SchemaValidator class."""

    def setUp(self):
        """Set up test fixtures."""
        registry = build_registry(Settings(user_roles="MEMBER,MODERATOR", subscription_plans="FREE,PRO"))
        self.validator = SchemaValidator(registry, enabled=True)
        self.validator_disabled = SchemaValidator(registry, enabled=False)
        self.created_at = "2025-04-15T10:30:00Z"
        self.updated_at = "2025-04-16T08:00:00Z"

    def user_properties(self, **overrides):
        properties = {
            "id": "user-123",
            "email": "ada@example.com",
            "role": "MEMBER",
            "name": "Ada",
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        properties.update(overrides)
        return properties

    def test_validate_entity_user(self):
        """Test validating a User record."""
        validated = self.validator.validate_entity("User", self.user_properties())

        self.assertEqual(validated["name"], "Ada")
        self.assertIs(validated["admin"], False)
        self.assertIsNone(validated["bio"])
        self.assertIsNone(validated["deletedAt"])
        self.assertIsInstance(validated["createdAt"], datetime)

    def test_validate_entity_github(self):
        """Test validating a GitHub account link."""
        properties = {
            "userId": "user-123",
            "accountId": "583231",
            "username": "octocat",
            "email": "octocat@example.com",
        }
        validated = self.validator.validate_entity("GitHub", properties)
        self.assertEqual(validated["username"], "octocat")

    def test_validate_entity_missing_required(self):
        """Test validating a record with missing required fields."""
        properties = self.user_properties()
        del properties["email"]

        # Validation should fail
        with self.assertRaises(ValueError):
            self.validator.validate_entity("User", properties)

        # With validation disabled, it should return the original properties
        validated_disabled = self.validator_disabled.validate_entity("User", properties)
        self.assertEqual(validated_disabled, properties)

    def test_validate_entity_enum_member(self):
        """Test that enum fields only take their declared members."""
        with self.assertRaises(ValueError):
            self.validator.validate_entity("User", self.user_properties(role="OWNER"))

        subscription = {
            "id": "sub-1",
            "plan": "PRO",
            "refersTo": "server-9",
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "userId": "user-123",
        }
        validated = self.validator.validate_entity("Subscription", subscription)
        self.assertEqual(validated["plan"], "PRO")

    def test_validate_entity_timestamps_ordered(self):
        """Test that updatedAt may not precede createdAt."""
        properties = self.user_properties(createdAt=self.updated_at, updatedAt=self.created_at)
        with self.assertRaises(ValueError):
            self.validator.validate_entity("User", properties)

    def test_validate_entity_unknown_field(self):
        """Test that undeclared columns are rejected."""
        with self.assertRaises(ValueError):
            self.validator.validate_entity("User", self.user_properties(nickname="ada"))

    def test_validate_entity_unknown_type(self):
        """Test validating a record with unknown type."""
        properties = {"id": "comment-1"}

        # Validation should fail
        with self.assertRaises(ValueError):
            self.validator.validate_entity("Comment", properties)

        # With validation disabled, it should return the original properties
        validated_disabled = self.validator_disabled.validate_entity("Comment", properties)
        self.assertEqual(validated_disabled, properties)

    def test_validate_edge(self):
        """Test validating edges against the registry."""
        self.validator.validate_edge("User", "github", "GitHub")
        self.validator.validate_edge("GitHub", "user", "User")

        with self.assertRaises(ValueError):
            self.validator.validate_edge("User", "github", "Discord")
        with self.assertRaises(ValueError):
            self.validator.validate_edge("User", "followers", "User")
        with self.assertRaises(ValueError):
            self.validator.validate_edge("Comment", "post", "Post")

        # With validation disabled, nothing is checked
        self.validator_disabled.validate_edge("User", "github", "Discord")

    def test_validate_edge_unknown_type_logged(self):
        """Test that an unknown entity type is logged before raising."""
        with mock.patch("community_schema.schema.validator.logger") as logger:
            with self.assertRaises(ValueError):
                self.validator.validate_edge("Comment", "post", "Post")

        logger.error.assert_called_once()
        self.assertIn("Comment", logger.error.call_args[0][0])

    def test_enabled_from_settings(self):
        """Test that SCHEMA_VALIDATION_ENABLED controls the default."""
        registry = self.validator.registry
        disabled = Settings(schema_validation_enabled=False)
        with mock.patch("community_schema.schema.validator.get_settings", return_value=disabled):
            validator = SchemaValidator(registry)
            explicit = SchemaValidator(registry, enabled=True)

        self.assertFalse(validator.enabled)
        self.assertTrue(explicit.enabled)
        self.assertEqual(validator.validate_entity("Comment", {"id": "c-1"}), {"id": "c-1"})

    def test_check_entity_compatibility(self):
        """Test checking record compatibility."""
        invalid_properties = self.user_properties()
        del invalid_properties["name"]

        # Check compatibility for valid record
        is_valid, error = self.validator.check_entity_compatibility("User", self.user_properties())
        self.assertTrue(is_valid)
        self.assertIsNone(error)

        # Check compatibility for invalid record
        is_valid, error = self.validator.check_entity_compatibility("User", invalid_properties)
        self.assertFalse(is_valid)
        self.assertIsNotNone(error)

        # With validation disabled, it should always return valid
        is_valid, error = self.validator_disabled.check_entity_compatibility("User", invalid_properties)
        self.assertTrue(is_valid)
        self.assertIsNone(error)


if __name__ == "__main__":
    unittest.main()
