"""Render request payloads: a tagged union keyed on ``type``."""

from enum import Enum
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import InvalidPayload, UnknownCardType


class CardType(str, Enum):
    """Card templates the renderer knows how to paint."""

    PROFILE = "profile"
    SHARE = "share"
    CLEANUP = "cleanup"


class _Model(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class ProfileInfo(_Model):
    name: str
    team: str


class LeveledProfile(ProfileInfo):
    level: int


class ShareStats(_Model):
    area: float
    volume: float


class CleanupStats(_Model):
    name: str
    area: float
    volume: float
    impact: float
    participants: int


class ProfileCardPayload(_Model):
    type: Literal["profile"] = "profile"
    # Range is checked by the painter so the error surfaces as AssetIndexOutOfRange
    monster: int = Field(validation_alias=AliasChoices("monster", "monsterIndex"))
    profile: LeveledProfile
    share: ShareStats


class ShareCardPayload(_Model):
    type: Literal["share"] = "share"
    profile: ProfileInfo
    share: ShareStats


class CleanupCardPayload(_Model):
    type: Literal["cleanup"] = "cleanup"
    monster: Optional[int] = Field(
        default=None, validation_alias=AliasChoices("monster", "monsterIndex")
    )
    profile: ProfileInfo
    cleanup: CleanupStats


CardPayload = Annotated[
    Union[ProfileCardPayload, ShareCardPayload, CleanupCardPayload],
    Field(discriminator="type"),
]

_payload_adapter: TypeAdapter = TypeAdapter(CardPayload)

PAYLOAD_TYPES = (ProfileCardPayload, ShareCardPayload, CleanupCardPayload)


def card_type_of(payload: Any) -> CardType:
    """Return the card type of a parsed payload."""
    return CardType(payload.type)


def parse_payload(data: Union[Mapping[str, Any], BaseModel]) -> CardPayload:
    """Validate a raw request mapping into its typed payload model.

    Raises:
        UnknownCardType: ``type`` is not one of the known card templates
        InvalidPayload: the mapping is missing fields required by its tag
    """
    if isinstance(data, PAYLOAD_TYPES):
        return data
    if not isinstance(data, Mapping):
        raise InvalidPayload(f"Payload must be a mapping, got {type(data).__name__}")

    tag = data.get("type")
    if tag is None:
        raise InvalidPayload("Payload has no 'type' field")
    if not isinstance(tag, str) or tag not in {t.value for t in CardType}:
        raise UnknownCardType(f"Unknown card type: {tag!r}")

    try:
        return _payload_adapter.validate_python(dict(data))
    except ValidationError as e:
        raise InvalidPayload(f"Invalid {tag} payload: {e}") from e
