"""
Entity types for Community Schema.

This module declares the community data model: users, their linked GitHub and
Discord accounts, subscriptions and tags, plus the entities they point at.
Field names follow the storage column names.
"""

from typing import List, Optional, Sequence

from loguru import logger

from community_schema.config import Settings, get_settings
from community_schema.schema import edges as edge
from community_schema.schema import fields as field
from community_schema.schema.registry import EntitySchema, SchemaRegistry, entity


# User entity, root of the identity graph
def user_schema(roles: Sequence[str] = ()) -> EntitySchema:
    """
    User entity type.

    Owns the linked accounts, servers, posts, reacts and subscriptions.
    ``roles`` are the members of the role enum; none means unresolved.
    """
    return entity(
        "User",
        fields=[
            field.string("id"),
            field.string("email"),
            field.enum("role", roles),
            field.string("name"),
            field.string("bio").optional(),
            field.boolean("admin").default(False),
            field.time("createdAt"),
            field.time("updatedAt"),
            field.time("deletedAt").optional(),
        ],
        edges=[
            edge.to("github", "GitHub").unique(),
            edge.to("discord", "Discord").unique(),
            edge.to("servers", "Server"),
            edge.to("posts", "Post"),
            edge.to("reacts", "React"),
            edge.to("subscriptions", "Subscription"),
        ],
    )


def _account_link_schema(name: str, owner_edge: str) -> EntitySchema:
    return entity(
        name,
        fields=[
            field.string("userId"),
            field.string("accountId"),
            field.string("username"),
            field.string("email"),
        ],
        edges=[
            edge.from_("user", "User", ref=owner_edge).unique(),
        ],
    )


# External account links
def github_schema() -> EntitySchema:
    """GitHub account linked to a user."""
    return _account_link_schema("GitHub", "github")


def discord_schema() -> EntitySchema:
    """Discord account linked to a user."""
    return _account_link_schema("Discord", "discord")


# Subscription entity
def subscription_schema(plans: Sequence[str] = ()) -> EntitySchema:
    """
    Subscription entity type.

    A user's subscription to a resource (``refersTo``), owning the
    notifications it produces. ``plans`` are the members of the plan enum.
    """
    return entity(
        "Subscription",
        fields=[
            field.string("id"),
            field.enum("plan", plans),
            field.string("refersTo"),
            field.time("createdAt"),
            field.time("updatedAt"),
            field.time("deletedAt").optional(),
            field.string("userId"),
        ],
        edges=[
            edge.from_("user", "User", ref="subscriptions").unique(),
            edge.to("notifications", "Notification"),
        ],
    )


def tag_schema() -> EntitySchema:
    return entity(
        "Tag",
        fields=[
            field.string("id"),
            field.string("name"),
        ],
        edges=[
            edge.to("posts", "Post"),
        ],
    )


def _referenced_schema(name: str) -> EntitySchema:
    # Only the identity is declared; these entities are owned by other schemas
    return entity(name, fields=[field.string("id")])


def entity_schemas(roles: Sequence[str] = (), plans: Sequence[str] = ()) -> List[EntitySchema]:
    """
    Declare every entity of the community model.

    Args:
        roles: Members of User.role
        plans: Members of Subscription.plan

    Returns:
        Entity schemas in declaration order
    """
    return [
        user_schema(roles),
        github_schema(),
        discord_schema(),
        subscription_schema(plans),
        tag_schema(),
        _referenced_schema("Server"),
        _referenced_schema("Post"),
        _referenced_schema("React"),
        _referenced_schema("Notification"),
    ]


def build_registry(settings: Optional[Settings] = None) -> SchemaRegistry:
    """
    Build the community registry.

    Args:
        settings: Settings supplying the enum members and schema version;
                  defaults to the cached environment settings

    Returns:
        Registry of every declared entity (not yet checked)
    """
    settings = settings or get_settings()
    registry = SchemaRegistry(
        entity_schemas(roles=settings.role_values, plans=settings.plan_values),
        version=settings.schema_version,
    )
    logger.info(f"Built schema registry {registry.version} with {len(registry)} entities")
    return registry
