"""Request payloads for the teacher authoring routes.

Wire names are camelCase; Python attributes stay snake_case.
"""

from __future__ import annotations

from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


SessionTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=16)]
QuestionTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=32)]
OptionTitle = Annotated[str, StringConstraints(strip_whitespace=True, min_length=2, max_length=30)]
Order = Annotated[int, Field(strict=True, ge=1)]


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class QuestionOrderItem(_Body):
    question_id: str = Field(alias="questionId", min_length=1)
    order: Order


class QuestionsOrderBody(_Body):
    data: List[QuestionOrderItem]


class OptionOrderItem(_Body):
    option_id: str = Field(alias="optionId", min_length=1)
    order: Order


class OptionsOrderBody(_Body):
    data: List[OptionOrderItem]


class CreateSessionBody(_Body):
    title: SessionTitle


class UpdateSessionBody(_Body):
    id: str
    title: Optional[SessionTitle] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive", strict=True)
    allow_guest_enrollment: Optional[bool] = Field(default=None, alias="allowGuestEnrollment", strict=True)


class AddQuestionBody(_Body):
    session_id: str = Field(alias="sessionId", min_length=1)
    title: Optional[QuestionTitle] = None
    order: Optional[Order] = None


class AddOptionBody(_Body):
    title: Optional[OptionTitle] = None


class QuestionTitleBody(_Body):
    id: str
    title: QuestionTitle


class QuestionDescriptionBody(_Body):
    id: str
    description: str


class QuestionDefaultOptionBody(_Body):
    id: str
    default_option_id: str = Field(alias="defaultOptionId", min_length=1)


class OptionTitleBody(_Body):
    id: str
    title: OptionTitle


class OptionDescriptionBody(_Body):
    id: str
    description: str


class OptionRewardMessageBody(_Body):
    id: str
    reward_message: str = Field(alias="rewardMessage")


class OptionRewardPointBody(_Body):
    id: str
    reward_point: int = Field(alias="rewardPoint", strict=True, ge=0)


class OptionEffectBody(_Body):
    id: str
    effect: bool = Field(strict=True)


# Path attribute segment -> (body model, column name)
QUESTION_ATTRIBUTES = {
    "title": (QuestionTitleBody, "title"),
    "description": (QuestionDescriptionBody, "description"),
    "default-option-id": (QuestionDefaultOptionBody, "default_option_id"),
}

OPTION_ATTRIBUTES = {
    "title": (OptionTitleBody, "title"),
    "description": (OptionDescriptionBody, "description"),
    "reward-message": (OptionRewardMessageBody, "reward_message"),
    "reward-point": (OptionRewardPointBody, "reward_point"),
    "effect": (OptionEffectBody, "effect"),
}


__all__ = [
    "AddOptionBody",
    "AddQuestionBody",
    "CreateSessionBody",
    "OPTION_ATTRIBUTES",
    "OptionOrderItem",
    "OptionsOrderBody",
    "QUESTION_ATTRIBUTES",
    "QuestionOrderItem",
    "QuestionsOrderBody",
    "UpdateSessionBody",
]
