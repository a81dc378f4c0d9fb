"""Typed deployment configuration models with strict serialized-form decoding.

Serialized keys are the camelCase names used by deployment YAML files, while
Python attributes are snake_case. Decoding through `from_serialized` runs two
passes: the key set of every mapping is checked against the declared fields
first, then each field is validated with strict type rules.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any, Self

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
    ValidationInfo,
    field_serializer,
    model_validator,
)

from .errors import SchemaViolation, SchemaViolationError

_SERIALIZED_INPUT_CONTEXT_KEY = "serialized_input"

# Site audience sentinel telling the client side to use fake authentication tokens.
FAKE_SITE_AUDIENCE = "fake-site-audience"


class _KeySetError(ValueError):
    """Key-set check failure carrying the offending keys for path reporting."""

    def __init__(self, unknown: tuple[str, ...], missing: tuple[str, ...]):
        parts = []
        if unknown:
            parts.append("unrecognized field(s) " + ", ".join(repr(key) for key in unknown))
        if missing:
            parts.append("missing required field(s) " + ", ".join(repr(key) for key in missing))
        super().__init__("; ".join(parts))
        self.unknown = unknown
        self.missing = missing


def _format_field_path(location: Iterable[int | str]) -> str:
    path = ".".join(str(part) for part in location)
    return path or "<root>"


def config_schema_violations_from_error(error: ValidationError) -> tuple[SchemaViolation, ...]:
    """Convert a pydantic validation error into field-path schema violations.

    Args:
        error: Validation error raised while decoding a serialized document.

    Returns:
        tuple[SchemaViolation, ...]: One entry per offending field.
    """

    violations: list[SchemaViolation] = []
    for detail in error.errors():
        location = tuple(detail["loc"])
        cause = detail.get("ctx", {}).get("error")
        if isinstance(cause, _KeySetError):
            for key in cause.unknown:
                violations.append(SchemaViolation(_format_field_path(location + (key,)), "unrecognized field"))
            for key in cause.missing:
                violations.append(SchemaViolation(_format_field_path(location + (key,)), "required field is missing"))
            continue
        violations.append(SchemaViolation(_format_field_path(location), detail["msg"]))
    return tuple(violations)


class _StrictSchemaModel(BaseModel):
    """Immutable closed-schema base for serialized configuration documents."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _check_serialized_key_set(cls, data: Any, info: ValidationInfo) -> Any:
        """Reject unknown keys and report missing required keys before field decoding."""

        if not (info.context or {}).get(_SERIALIZED_INPUT_CONTEXT_KEY) or not isinstance(data, Mapping):
            return data

        declared_keys = {field.alias or name for name, field in cls.model_fields.items()}
        required_keys = {field.alias or name for name, field in cls.model_fields.items() if field.is_required()}
        unknown = tuple(sorted(str(key) for key in data if key not in declared_keys))
        missing = tuple(sorted(key for key in required_keys if key not in data))
        if unknown or missing:
            raise _KeySetError(unknown=unknown, missing=missing)
        return data

    @classmethod
    def from_serialized(cls, data: Mapping[str, Any], source: str | None = None) -> Self:
        """Decode a generic mapping using the strict closed schema.

        Args:
            data: Mapping already decoded from YAML or JSON text.
            source: Optional file path included in error messages.

        Returns:
            Self: Validated immutable model instance.

        Raises:
            SchemaViolationError: Raised for unknown, missing or mistyped fields.
        """

        try:
            return cls.model_validate(data, context={_SERIALIZED_INPUT_CONTEXT_KEY: True})
        except ValidationError as error:
            raise SchemaViolationError(config_schema_violations_from_error(error), source=source) from error

    def to_serialized(self) -> dict[str, Any]:
        """Return the plain mapping form accepted by `from_serialized`."""

        return self.model_dump(mode="json", by_alias=True)


class AdminPermission(str, Enum):
    """Permission that can be granted to administrators."""

    LIST_USERS = "listUsers"
    REMOVE_USERS = "removeUsers"
    MANAGE_ASSIGNED_TAGS = "manageAssignedTags"
    REMOVE_PACKAGE = "removePackage"


class AdminId(_StrictSchemaModel):
    """Administrator identity and granted permissions.

    The permission iterable is copied into a frozenset on construction, so
    later changes to the caller's collection never reach the stored set.

    Attributes:
        oauth_user_id: External OAuth identity key of the administrator.
        email: Administrator email address.
        permissions: Deduplicated set of granted permissions.
    """

    oauth_user_id: StrictStr = Field(alias="oauthUserId")
    email: StrictStr = Field(alias="email")
    permissions: frozenset[AdminPermission] = Field(alias="permissions")

    @field_serializer("permissions")
    def _serialize_permissions(self, permissions: frozenset[AdminPermission]) -> list[str]:
        return [permission.value for permission in AdminPermission if permission in permissions]

    def has_permission(self, permission: AdminPermission) -> bool:
        return permission in self.permissions


class Configuration(_StrictSchemaModel):
    """Validated deployment configuration of the pub site.

    The configuration defines the Cloud Storage buckets for package content
    and derived artifacts, the service URLs, OAuth audiences and the
    administrator list.

    Attributes:
        project_id: Cloud project id, only required for Apiary-based access.
        package_bucket_name: Bucket for uploaded package content.
        dartdoc_storage_bucket_name: Bucket for dartdoc generated output.
        popularity_dump_bucket_name: Bucket for popularity data dumps.
        search_snapshot_bucket_name: Bucket for search snapshots.
        backup_snapshot_bucket_name: Bucket for datastore backup snapshots.
        search_service_prefix: scheme://host:port prefix of the search service.
        storage_base_url: scheme://host:port prefix for storage URLs.
        pub_client_audience: OAuth audience used by the `pub` client.
        pub_site_audience: OAuth audience used by the pub site.
        admin_audience: OAuth audience used by admin accounts.
        gmail_relay_service_account: Service account with domain-wide
            delegation for the mail relay. Email sending is disabled when unset.
        gmail_relay_impersonated_gsuite_user: GSuite user impersonated when
            sending through the relay. Email sending is disabled when unset.
        upload_signer_service_account: Service account used to sign upload URLs.
        block_robots: Whether indexing by robots should be blocked.
        production_hosts: Hostnames treated as production, for cache policy.
        primary_api_uri: Base URI for API endpoints.
        primary_site_uri: Base URI for HTML content.
        admins: Administrator identities.
    """

    project_id: StrictStr | None = Field(default=None, alias="projectId")
    package_bucket_name: StrictStr = Field(alias="packageBucketName")
    dartdoc_storage_bucket_name: StrictStr = Field(alias="dartdocStorageBucketName")
    popularity_dump_bucket_name: StrictStr = Field(alias="popularityDumpBucketName")
    search_snapshot_bucket_name: StrictStr = Field(alias="searchSnapshotBucketName")
    backup_snapshot_bucket_name: StrictStr = Field(alias="backupSnapshotBucketName")
    search_service_prefix: StrictStr = Field(alias="searchServicePrefix")
    storage_base_url: StrictStr = Field(alias="storageBaseUrl")
    pub_client_audience: StrictStr | None = Field(default=None, alias="pubClientAudience")
    pub_site_audience: StrictStr | None = Field(default=None, alias="pubSiteAudience")
    admin_audience: StrictStr | None = Field(default=None, alias="adminAudience")
    gmail_relay_service_account: StrictStr | None = Field(default=None, alias="gmailRelayServiceAccount")
    gmail_relay_impersonated_gsuite_user: StrictStr | None = Field(
        default=None,
        alias="gmailRelayImpersonatedGSuiteUser",
    )
    upload_signer_service_account: StrictStr | None = Field(default=None, alias="uploadSignerServiceAccount")
    block_robots: StrictBool = Field(alias="blockRobots")
    production_hosts: tuple[StrictStr, ...] = Field(alias="productionHosts")
    primary_api_uri: AnyUrl = Field(alias="primaryApiUri")
    primary_site_uri: AnyUrl = Field(alias="primarySiteUri")
    admins: tuple[AdminId, ...] = Field(alias="admins")

    @property
    def is_email_sending_enabled(self) -> bool:
        """Return whether both mail relay identities are configured."""

        return bool(self.gmail_relay_service_account and self.gmail_relay_impersonated_gsuite_user)

    @property
    def uses_fake_site_audience(self) -> bool:
        return self.pub_site_audience == FAKE_SITE_AUDIENCE

    @classmethod
    def for_fake_pub_server(cls, frontend_port: int, search_port: int, storage_base_url: str) -> Configuration:
        """Build the configuration used by the local fake pub server.

        Args:
            frontend_port: Local port serving both API and HTML content.
            search_port: Local port of the search service.
            storage_base_url: Base URL of the fake storage server.

        Returns:
            Configuration: Localhost-wired configuration with email disabled.
        """

        return cls(
            project_id="dartlang-pub-fake",
            package_bucket_name="fake-bucket-pub",
            dartdoc_storage_bucket_name="fake-bucket-dartdoc",
            popularity_dump_bucket_name="fake-bucket-popularity",
            search_snapshot_bucket_name="fake-bucket-search",
            backup_snapshot_bucket_name="fake-bucket-backup",
            search_service_prefix=f"http://localhost:{search_port}",
            storage_base_url=storage_base_url,
            pub_client_audience=None,
            pub_site_audience=FAKE_SITE_AUDIENCE,
            admin_audience=None,
            gmail_relay_service_account=None,
            gmail_relay_impersonated_gsuite_user=None,
            upload_signer_service_account=None,
            block_robots=False,
            production_hosts=("localhost",),
            primary_api_uri=f"http://localhost:{frontend_port}/",
            primary_site_uri=f"http://localhost:{frontend_port}/",
            admins=(_default_admin(),),
        )

    @classmethod
    def for_tests(cls, storage_base_url: str | None = None) -> Configuration:
        """Build the configuration used by automated tests.

        Args:
            storage_base_url: Optional storage URL; defaults to an unreachable
                localhost placeholder.

        Returns:
            Configuration: Configuration with OAuth and email features disabled.
        """

        return cls(
            project_id="dartlang-pub-test",
            package_bucket_name="fake-bucket-pub",
            dartdoc_storage_bucket_name="fake-bucket-dartdoc",
            popularity_dump_bucket_name="fake-bucket-popularity",
            search_snapshot_bucket_name="fake-bucket-search",
            backup_snapshot_bucket_name="fake-bucket-backup",
            search_service_prefix="http://localhost:0",
            storage_base_url=storage_base_url or "http://localhost:0",
            pub_client_audience=None,
            pub_site_audience=None,
            admin_audience=None,
            gmail_relay_service_account=None,
            gmail_relay_impersonated_gsuite_user=None,
            upload_signer_service_account=None,
            block_robots=True,
            production_hosts=("localhost",),
            primary_api_uri="https://pub.dartlang.org/",
            primary_site_uri="https://pub.dev/",
            admins=(_default_admin(),),
        )


def _default_admin() -> AdminId:
    return AdminId(oauth_user_id="admin-pub-dev", email="admin@pub.dev", permissions=list(AdminPermission))
