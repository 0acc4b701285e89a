"""Request payloads for user, admin and student routes."""

from __future__ import annotations

from typing import Annotated, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


class AssignRoleBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1)
    new_role: Literal["STUDENT", "TEACHER", "ADMIN"] = Field(alias="newRole")


class UpdateProfileBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    display_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=30)] = Field(
        alias="displayName"
    )
    avatar_img_key: Optional[Annotated[str, StringConstraints(pattern=r"^private/[a-f0-9]{32}$")]] = Field(
        default=None, alias="avatarImgKey"
    )


__all__ = ["AssignRoleBody", "UpdateProfileBody"]
