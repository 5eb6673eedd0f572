"""Base model for per-call policies."""

from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, ValidationError

from flowpath.domain.errors import InvalidArgumentError

P = TypeVar("P", bound="PolicyModel")


def reject_bool(value: Any) -> Any:
    """Reject booleans for numeric fields (pydantic would coerce True to 1)"""
    if isinstance(value, bool):
        raise ValueError("booleans are not accepted as numbers")
    return value


class PolicyModel(BaseModel):
    """Immutable, validated policy passed to a single engine call."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def from_options(cls: Type[P], policy: Optional[P] = None, **options: Any) -> P:
        """Build a policy from an optional base policy plus keyword overrides

        Args:
            policy: Existing policy to start from (defaults when None)
            **options: Field values (aliases accepted) overriding the base policy

        Returns:
            Validated policy instance

        Raises:
            InvalidArgumentError: If the policy has the wrong type or a field is invalid
        """
        if policy is not None and not isinstance(policy, cls):
            raise InvalidArgumentError(
                f"Parameter 'policy' must be a {cls.__name__}", "policy", policy
            )
        if policy is not None and not options:
            return policy

        values: Dict[str, Any] = {}
        if policy is not None:
            values = {name: getattr(policy, name) for name in cls.model_fields}
        aliases = cls._alias_map()
        for key, value in options.items():
            values[aliases.get(key, key)] = value

        try:
            return cls(**values)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(x) for x in error["loc"]) or None
            raise InvalidArgumentError(
                f"Invalid {cls.__name__}: {field}: {error['msg']}",
                field,
                error.get("input"),
            ) from e

    @classmethod
    def _alias_map(cls) -> Dict[str, str]:
        aliases: Dict[str, str] = {}
        for name, field in cls.model_fields.items():
            if isinstance(field.validation_alias, AliasChoices):
                for choice in field.validation_alias.choices:
                    if isinstance(choice, str):
                        aliases[choice] = name
        return aliases
