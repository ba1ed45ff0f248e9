"""MessageCard models and their JSON wire contract."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

CARD_TYPE = "MessageCard"
CARD_CONTEXT = "http://schema.org/extensions"
OPEN_URI = "OpenUri"


class _CardPart(BaseModel):
    """Common config: frozen, populated by field name or wire alias."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Fact(_CardPart):
    """A name/value pair shown inside a section."""

    name: str
    value: str


class Section(_CardPart):
    """A titled group of facts."""

    title: str
    facts: list[Fact]


class ActionTarget(_CardPart):
    """Where an action button points."""

    uri: str
    os: str = "default"


class Action(_CardPart):
    """A clickable button that opens a URI."""

    type: Literal["OpenUri"] = Field(default=OPEN_URI, alias="@type")
    name: str
    targets: list[ActionTarget]


class CardModel(_CardPart):
    """One notification card.

    Field declaration order is the serialization order.
    """

    type: Literal["MessageCard"] = Field(default=CARD_TYPE, alias="@type")
    context: Literal["http://schema.org/extensions"] = Field(
        default=CARD_CONTEXT, alias="@context"
    )
    title: str
    text: str
    color: str = Field(alias="themeColor")
    sections: list[Section] | None = None
    actions: list[Action] | None = Field(default=None, alias="potentialAction")


def serialize_card(card: CardModel) -> bytes:
    """Serialize a card to compact UTF-8 JSON, omitting absent sections/actions."""
    return card.model_dump_json(by_alias=True, exclude_none=True).encode("utf-8")


def parse_card(payload: bytes | str) -> CardModel:
    """Parse a serialized card back into a CardModel."""
    return CardModel.model_validate_json(payload)
