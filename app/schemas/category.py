"""Category schemas - flat records, derived tree nodes and mutation payloads."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, Field, field_validator


class CategoryNode(BaseModel):
    """Flat category record as stored by the persistence layer.

    Product counts are supplied by the store and only cover products
    assigned directly to this category (not via descendants).
    """

    id: int = Field(description="Unique category identifier")
    name: str = Field(min_length=1, description="Category display name")
    parent_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("parent_id", "parentId"),
        description="Parent category id, None for roots",
    )
    is_active: bool = Field(
        default=True,
        validation_alias=AliasChoices("is_active", "isActive"),
        description="Inactive categories are hidden from public consumers",
    )
    is_controlled: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_controlled", "isControlled"),
        description="Display-only flag for controlled goods",
    )
    description: str | None = Field(default=None, description="Optional description")
    image: str | None = Field(default=None, description="Optional icon URL")
    direct_product_count: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("direct_product_count", "product_count"),
        description="Products assigned directly to this category (all statuses)",
    )
    direct_published_product_count: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices(
            "direct_published_product_count", "published_product_count"
        ),
        description="Products assigned directly to this category (published only)",
    )

    model_config = {"extra": "forbid", "frozen": True, "populate_by_name": True}


class CategoryRead(CategoryNode):
    """Category record with its position and rollup statistics."""

    depth: int = Field(default=0, ge=0, description="0 for roots")
    total_product_count: int = Field(
        default=0, ge=0, description="Direct products plus all descendants' products"
    )
    total_published_product_count: int = Field(
        default=0, ge=0, description="Published products across the whole subtree"
    )
    direct_subcategory_count: int = Field(
        default=0, ge=0, description="Number of immediate children"
    )
    total_subcategory_count: int = Field(
        default=0, ge=0, description="Number of all descendants"
    )


class TreeNode(CategoryRead):
    """Category with its children, as produced by the tree builder."""

    children: list[TreeNode] = Field(
        default_factory=list, description="Children in input order"
    )

    def to_read(self) -> CategoryRead:
        """Drop the children and return the flat derived view."""
        return CategoryRead.model_validate(self.model_dump(exclude={"children"}))


class CategoryPath(BaseModel):
    """Main / category / subcategory triple locating a node in the hierarchy."""

    main_category_id: int | None = None
    category_id: int | None = None
    subcategory_id: int | None = None

    model_config = {"extra": "forbid", "frozen": True}


# =============================================================================
# Mutation payloads
# =============================================================================


class CategoryCreate(BaseModel):
    """Payload for creating a category."""

    name: str = Field(description="Category name (trimmed, must not be empty)")
    parent_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("parent_id", "parentId"),
        description="Parent category id, None creates a main category",
    )
    description: str | None = None
    image: str | None = None
    is_controlled: bool = Field(
        default=False,
        validation_alias=AliasChoices("is_controlled", "isControlled"),
    )
    is_active: bool = Field(
        default=True,
        validation_alias=AliasChoices("is_active", "isActive"),
    )

    model_config = {"extra": "forbid", "populate_by_name": True}

    @field_validator("parent_id", mode="before")
    @classmethod
    def empty_parent_is_root(cls, v: object) -> object:
        """Form posts send an empty string for "no parent"."""
        if v == "" or v == "none":
            return None
        return v


class CategoryUpdate(BaseModel):
    """Payload for updating a category.

    Only the fields that are explicitly set are applied. Setting
    ``parent_id`` (including to ``None``) moves the category.
    """

    name: str | None = None
    parent_id: int | None = Field(
        default=None,
        validation_alias=AliasChoices("parent_id", "parentId"),
    )
    description: str | None = None
    image: str | None = None
    is_controlled: bool | None = Field(
        default=None,
        validation_alias=AliasChoices("is_controlled", "isControlled"),
    )

    model_config = {"extra": "forbid", "populate_by_name": True}

    @field_validator("parent_id", mode="before")
    @classmethod
    def empty_parent_is_root(cls, v: object) -> object:
        """Form posts send an empty string for "no parent"."""
        if v == "" or v == "none":
            return None
        return v

    @property
    def moves(self) -> bool:
        """Whether the payload asks for a parent change."""
        return "parent_id" in self.model_fields_set


class CategoryStatusUpdate(BaseModel):
    """Payload for toggling the active flag."""

    is_active: bool = Field(validation_alias=AliasChoices("is_active", "isActive"))

    model_config = {"extra": "forbid", "populate_by_name": True}


# =============================================================================
# Responses
# =============================================================================


class HierarchyWarningRead(BaseModel):
    """Defensive warning reported while building the tree."""

    kind: str
    node_id: int
    message: str
    related_ids: list[int] = Field(default_factory=list)


class DeactivationAdvisoryRead(BaseModel):
    """What becomes hidden from the storefront when a category is deactivated."""

    category_id: int
    hidden_category_ids: list[int]
    hidden_product_count: int
    hidden_published_product_count: int
    message: str


class CategoryTreeResponse(BaseModel):
    """Built (and optionally filtered) category forest."""

    categories: list[TreeNode]
    auto_expand_ids: list[int] = Field(default_factory=list)
    warnings: list[HierarchyWarningRead] = Field(default_factory=list)
    query: str | None = None


class CategoryDetail(BaseModel):
    """Single category with its location in the hierarchy."""

    category: CategoryRead
    ancestor_ids: list[int]
    path: CategoryPath


class CategoryStatusResponse(BaseModel):
    """Result of an activation toggle."""

    category: CategoryRead
    advisory: DeactivationAdvisoryRead | None = None
