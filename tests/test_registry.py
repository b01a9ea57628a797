"""
Tests for the schema registry and the community entity declarations.
"""

import unittest

from community_schema.config import Settings
from community_schema.errors import DanglingEdgeError, DuplicateEntityError, SchemaCompilationError
from community_schema.schema import build_registry
from community_schema.schema import edges as edge
from community_schema.schema import fields as field
from community_schema.schema.fields import default_matches
from community_schema.schema.registry import SchemaRegistry, entity


def resolved_settings() -> Settings:
    return Settings(user_roles="MEMBER, MODERATOR", subscription_plans="FREE,PRO", schema_version="2.1.0")


class TestCommunityRegistry(unittest.TestCase):
    """Structural checks on the community registry."""

    def setUp(self):
        """Set up test fixtures."""
        self.registry = build_registry(resolved_settings())
        self.unresolved = build_registry(Settings(user_roles="", subscription_plans=""))

    def test_declared_entities(self):
        """Test that every entity and every edge target is declared."""
        self.assertEqual(
            self.registry.names,
            ["User", "GitHub", "Discord", "Subscription", "Tag", "Server", "Post", "React", "Notification"],
        )
        self.assertEqual(self.registry.version, "2.1.0")

    def test_user_fields(self):
        """Test the User field list and modifiers."""
        user = self.registry.get("User")
        self.assertEqual(
            user.field_names,
            ["id", "email", "role", "name", "bio", "admin", "createdAt", "updatedAt", "deletedAt"],
        )
        self.assertTrue(user.field("bio").is_optional)
        self.assertIs(user.field("admin").default_value, False)
        self.assertEqual(user.field("role").values, ("MEMBER", "MODERATOR"))

    def test_field_names_unique(self):
        """Test that field names are unique within every entity."""
        for schema in self.registry:
            self.assertEqual(len(schema.field_names), len(set(schema.field_names)), schema.name)

    def test_no_dangling_edges(self):
        """Test that every edge target resolves to a declared entity."""
        for schema in self.registry:
            for descriptor in schema.edges:
                self.assertIn(descriptor.target, self.registry)
        self.assertEqual(self.registry.get("User").edge("github").target, "GitHub")

    def test_soft_delete_optional(self):
        """Test that deletedAt is optional wherever timestamps are declared."""
        for schema in self.registry:
            if schema.field("createdAt") or schema.field("updatedAt"):
                self.assertTrue(schema.field("deletedAt").is_optional, schema.name)

    def test_defaults_match_types(self):
        """Test that every default fits its field type."""
        for schema in self.registry:
            for descriptor in schema.fields:
                if descriptor.has_default:
                    self.assertTrue(default_matches(descriptor.type, descriptor.default_value), descriptor.name)

    def test_resolved_registry_compiles(self):
        """Test that a registry with enum members passes the check."""
        self.assertEqual(self.registry.issues(), [])
        self.assertIs(self.registry.check(), self.registry)

    def test_unresolved_enums_fail(self):
        """Test that role and plan without members fail compilation."""
        issues = self.unresolved.issues()
        self.assertEqual(
            [(issue.entity, issue.code) for issue in issues],
            [("User", "unresolved-enum"), ("Subscription", "unresolved-enum")],
        )

        with self.assertRaises(SchemaCompilationError) as ctx:
            self.unresolved.check()
        self.assertEqual(len(ctx.exception.issues), 2)

    def test_account_links_are_single_relations(self):
        """Test that User and its linked accounts form one relation each."""
        self.assertEqual(self.registry.inverse_of("User", "github").name, "user")
        self.assertEqual(self.registry.inverse_of("GitHub", "user").name, "github")
        self.assertEqual(self.registry.inverse_of("Discord", "user").name, "discord")
        self.assertEqual(self.registry.inverse_of("Subscription", "user").name, "subscriptions")
        self.assertIsNone(self.registry.inverse_of("User", "servers"))

        with self.assertRaises(KeyError):
            self.registry.inverse_of("User", "followers")

    def test_relations_listed_once(self):
        """Test that relations are keyed by their owning edge."""
        relations = self.registry.relations()
        self.assertEqual(
            [(r.owner, r.edge.name) for r in relations],
            [
                ("User", "github"), ("User", "discord"), ("User", "servers"), ("User", "posts"),
                ("User", "reacts"), ("User", "subscriptions"), ("Subscription", "notifications"),
                ("Tag", "posts"),
            ],
        )
        github = relations[0]
        self.assertEqual(github.inverse_entity, "GitHub")
        self.assertEqual(github.inverse.name, "user")

    def test_get_unknown_entity(self):
        """Test looking up an undeclared entity."""
        with self.assertRaises(KeyError):
            self.registry.get("Comment")

    def test_registry_equality(self):
        """Test that registries built from the same settings are equal."""
        self.assertEqual(self.registry, build_registry(resolved_settings()))
        self.assertNotEqual(self.registry, self.unresolved)


class TestRegistryChecks(unittest.TestCase):
    """Well-formedness checks on hand-built registries."""

    def test_dangling_edge(self):
        """Test that an edge to an undeclared entity fails."""
        author = entity("Author", fields=[field.string("id")], edges=[edge.to("books", "Book")])
        with self.assertRaises(DanglingEdgeError):
            SchemaRegistry([author])

    def test_duplicate_entity(self):
        """Test that entity names are unique."""
        with self.assertRaises(DuplicateEntityError):
            SchemaRegistry([entity("Tag", fields=[field.string("id")]), entity("Tag", fields=[field.string("id")])])

    def test_broken_inverse(self):
        """Test inverse edges that do not resolve to an owning edge back."""
        registry = SchemaRegistry([
            entity("Author", fields=[field.string("id")], edges=[edge.to("books", "Book"), edge.to("shelves", "Shelf")]),
            entity("Shelf", fields=[field.string("id")]),
            entity("Book", fields=[field.string("id")], edges=[
                edge.from_("author", "Author", ref="missing"),
                edge.from_("shelf", "Author", ref="shelves"),
            ]),
        ])
        issues = [issue for issue in registry.issues() if issue.code == "broken-inverse"]
        self.assertEqual(len(issues), 2)
        self.assertTrue(all(issue.entity == "Book" for issue in issues))

    def test_two_inverses_for_one_owner(self):
        """Test that an owning edge has at most one back-reference."""
        registry = SchemaRegistry([
            entity("Author", fields=[field.string("id")], edges=[edge.to("books", "Book")]),
            entity("Book", fields=[field.string("id")], edges=[
                edge.from_("author", "Author", ref="books"),
                edge.from_("writer", "Author", ref="books"),
            ]),
        ])
        codes = [issue.code for issue in registry.issues()]
        self.assertEqual(codes, ["broken-inverse"])

    def test_required_soft_delete(self):
        """Test that a required deletedAt is reported."""
        registry = SchemaRegistry([
            entity("Post", fields=[field.string("id"), field.time("createdAt"), field.time("deletedAt")]),
        ])
        self.assertEqual([issue.code for issue in registry.issues()], ["soft-delete-not-optional"])

    def test_soft_delete_checks(self):
        """Test the soft-delete codes and entities without deletedAt."""
        wrong_type = SchemaRegistry([
            entity("Post", fields=[field.string("id"), field.time("createdAt"), field.string("deletedAt").optional()]),
        ])
        self.assertEqual([issue.code for issue in wrong_type.issues()], ["soft-delete-not-time"])

        no_soft_delete = SchemaRegistry([entity("Post", fields=[field.string("id"), field.time("createdAt")])])
        self.assertEqual(no_soft_delete.issues(), [])

    def test_missing_identity(self):
        """Test that an entity needs an identity-bearing field."""
        registry = SchemaRegistry([entity("Note", fields=[field.string("body")])])
        self.assertEqual([issue.code for issue in registry.issues()], ["missing-identity"])


class TestSettings(unittest.TestCase):
    """Enum member configuration."""

    def test_member_lists(self):
        """Test splitting comma-separated members."""
        settings = Settings(user_roles=" MEMBER, ,MODERATOR,MEMBER", subscription_plans="")
        self.assertEqual(settings.role_values, ("MEMBER", "MODERATOR"))
        self.assertEqual(settings.plan_values, ())


if __name__ == "__main__":
    unittest.main()
