from supabase import Client
from app.core.errors import NotFound, StoreFailure, is_unique_violation
from app.database.records import fetch_all, fetch_one, insert_record, now_ms, update_record
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def display_name_for(user_data: Dict[str, Any]) -> str:
    metadata = user_data.get("user_metadata") or {}
    email = user_data.get("email") or ""
    return metadata.get("display_name") or metadata.get("full_name") or email.split("@")[0] or "member"


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def ensure_profile(self, user_data: Dict[str, Any]) -> ProfileResponse:
        """Return the caller's profile, creating it on first sign-in"""
        uid = user_data["id"]
        try:
            existing = fetch_one(self.supabase, "user_profiles", id=uid)
            if existing is not None:
                return ProfileResponse(**existing)

            now = now_ms()
            try:
                record = insert_record(self.supabase, "user_profiles", {
                    "id": uid,
                    "uid": uid,
                    "email": user_data.get("email") or "",
                    "display_name": display_name_for(user_data),
                    "avatar": None,
                    "role": "member",
                    "joined_at": now,
                    "last_active": now,
                }, now=now)
            except Exception as e:
                # Two first requests raced; the other one created it
                if not is_unique_violation(e):
                    raise
                record = fetch_one(self.supabase, "user_profiles", id=uid)
            logger.info(f"Created profile for {uid}")
            return ProfileResponse(**record)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("ensure_profile", e)

    def get_profile(self, uid: str) -> ProfileResponse:
        try:
            row = fetch_one(self.supabase, "user_profiles", id=uid)
            if row is None:
                raise NotFound("User profile")
            return ProfileResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("get_profile", e)

    def find_profile(self, uid: str) -> Optional[ProfileResponse]:
        try:
            row = fetch_one(self.supabase, "user_profiles", id=uid)
            return ProfileResponse(**row) if row else None
        except Exception as e:
            raise StoreFailure("find_profile", e)

    def update_profile(self, uid: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update editable fields; always refreshes last_active"""
        try:
            update_data = {"last_active": now_ms()}
            if profile_data.display_name:
                update_data["display_name"] = profile_data.display_name
            if profile_data.avatar is not None:
                update_data["avatar"] = profile_data.avatar

            row = update_record(self.supabase, "user_profiles", uid, update_data)
            if row is None:
                raise NotFound("User profile")
            return ProfileResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("update_profile", e)

    def set_role(self, uid: str, role: str) -> ProfileResponse:
        try:
            row = update_record(self.supabase, "user_profiles", uid, {"role": role})
            if row is None:
                raise NotFound("User profile")
            logger.info(f"Role of {uid} set to {role}")
            return ProfileResponse(**row)
        except HTTPException:
            raise
        except Exception as e:
            raise StoreFailure("set_role", e)

    def list_profiles(self) -> List[ProfileResponse]:
        try:
            rows = fetch_all(self.supabase, "user_profiles", order_by="joined_at", desc=True)
            return [ProfileResponse(**row) for row in rows]
        except Exception as e:
            raise StoreFailure("list_profiles", e)
