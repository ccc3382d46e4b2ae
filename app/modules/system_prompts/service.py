from supabase import Client
from fastapi import HTTPException
from app.modules.system_prompts.schemas import (
    SystemPromptCreate, SystemPromptUpdate, TrainingDataCreate, TrainingDataUpdate
)
from app.modules.system_prompts.prompt_utils import (
    sanitize_prompt_content, validate_system_prompt_data, combine_with_training_data,
    extract_prompt_variables, estimate_tokens, calculate_estimated_cost
)
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

# Fields whose change archives the previous row into system_prompt_versions
VERSIONED_FIELDS = ("name", "prompt_content", "category")


class SystemPromptService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    # ---- lookups used by the generation pipeline ----

    def get_latest_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Highest version of the prompt with this name, or None"""
        result = self.supabase.table("system_prompts")\
            .select("*")\
            .eq("name", name)\
            .order("version", desc=True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def get_active_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("system_prompts")\
            .select("*")\
            .eq("name", name)\
            .eq("is_active", True)\
            .order("version", desc=True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def get_active_by_category(self, category: str) -> Optional[Dict[str, Any]]:
        """Most recently created active prompt in a category, or None"""
        result = self.supabase.table("system_prompts")\
            .select("*")\
            .eq("category", category)\
            .eq("is_active", True)\
            .order("created_at", desc=True)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def get_full_prompt_content(self, prompt: Dict[str, Any]) -> str:
        """Prompt content followed by its training examples"""
        training_data = self.supabase.table("system_prompt_training_data")\
            .select("*")\
            .eq("system_prompt_id", prompt["id"])\
            .order("created_at")\
            .execute()
        return combine_with_training_data(prompt["prompt_content"], training_data.data or [])

    # ---- admin CRUD ----

    def list_prompts(self, category: Optional[str] = None, is_active: Optional[bool] = None) -> List[Dict[str, Any]]:
        try:
            query = self.supabase.table("system_prompts").select("*")
            if category:
                query = query.eq("category", category)
            if is_active is not None:
                query = query.eq("is_active", is_active)
            result = query.order("created_at", desc=True).execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Failed to list system prompts: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch system prompts")

    def get_prompt(self, prompt_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("system_prompts")\
                .select("*")\
                .eq("id", prompt_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            logger.error(f"Failed to fetch system prompt {prompt_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch system prompt")
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="System prompt not found")
        return result.data

    def _name_taken(self, name: str, exclude_id: Optional[str] = None) -> bool:
        query = self.supabase.table("system_prompts").select("id").eq("name", name)
        if exclude_id:
            query = query.neq("id", exclude_id)
        result = query.execute()
        return bool(result.data)

    def create_prompt(self, prompt_data: SystemPromptCreate, user_id: str) -> Dict[str, Any]:
        """Validate, sanitize and insert a new prompt"""
        data = prompt_data.model_dump()
        errors = validate_system_prompt_data(data)
        if errors:
            raise HTTPException(status_code=400, detail={"message": "Validation failed", "errors": errors})

        try:
            name = data["name"].strip()
            if self._name_taken(name):
                raise HTTPException(status_code=409, detail="A prompt with this name already exists")

            result = self.supabase.table("system_prompts").insert({
                "name": name,
                "description": data.get("description"),
                "category": data["category"],
                "prompt_content": sanitize_prompt_content(data["prompt_content"]),
                "variables": data.get("variables") or {},
                "model_id": data.get("model_id"),
                "is_active": data["is_active"],
                "version": 1,
                "created_by": user_id,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create system prompt")
            logger.info(f"System prompt created: {name}")
            return result.data[0]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to create system prompt: {e}")
            raise HTTPException(status_code=500, detail="Failed to create system prompt")

    def _archive_version(self, prompt: Dict[str, Any]) -> None:
        self.supabase.table("system_prompt_versions").insert({
            "original_prompt_id": prompt["id"],
            "version_number": prompt.get("version") or 1,
            "name": prompt["name"],
            "description": prompt.get("description"),
            "category": prompt["category"],
            "prompt_content": prompt["prompt_content"],
            "variables": prompt.get("variables") or {},
            "is_active": prompt.get("is_active", True),
            "created_by": prompt.get("created_by"),
        }).execute()

    def update_prompt(self, prompt_id: str, prompt_data: SystemPromptUpdate) -> Tuple[Dict[str, Any], bool]:
        """
        Apply a partial update. Changing name, content or category archives the
        current row and bumps the version. Returns (prompt, version_created).
        """
        current = self.get_prompt(prompt_id)
        update_data = prompt_data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(status_code=400, detail="No fields to update")

        errors = validate_system_prompt_data(update_data)
        if errors:
            raise HTTPException(status_code=400, detail={"message": "Validation failed", "errors": errors})

        if "name" in update_data:
            update_data["name"] = update_data["name"].strip()
        if "prompt_content" in update_data:
            update_data["prompt_content"] = sanitize_prompt_content(update_data["prompt_content"])

        try:
            if "name" in update_data and update_data["name"] != current["name"]:
                if self._name_taken(update_data["name"], exclude_id=prompt_id):
                    raise HTTPException(status_code=409, detail="A prompt with this name already exists")

            version_created = any(
                field in update_data and update_data[field] != current.get(field)
                for field in VERSIONED_FIELDS
            )
            if version_created:
                self._archive_version(current)
                update_data["version"] = (current.get("version") or 1) + 1

            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("system_prompts")\
                .update(update_data)\
                .eq("id", prompt_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="System prompt not found")
            logger.info(f"System prompt {prompt_id} updated (version_created={version_created})")
            return result.data[0], version_created
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to update system prompt {prompt_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update system prompt")

    def delete_prompt(self, prompt_id: str) -> Dict[str, Any]:
        current = self.get_prompt(prompt_id)
        try:
            self.supabase.table("system_prompts").delete().eq("id", prompt_id).execute()
            logger.info(f"System prompt deleted: {current['name']}")
            return {"id": current["id"], "name": current["name"]}
        except Exception as e:
            logger.error(f"Failed to delete system prompt {prompt_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete system prompt")

    def list_versions(self, prompt_id: str) -> List[Dict[str, Any]]:
        self.get_prompt(prompt_id)
        result = self.supabase.table("system_prompt_versions")\
            .select("*")\
            .eq("original_prompt_id", prompt_id)\
            .order("version_number", desc=True)\
            .execute()
        return result.data or []

    def preview_prompt(self, prompt_id: str, expected_completion_tokens: int = 1000) -> Dict[str, Any]:
        """Full prompt text with training data, its variables and a rough cost estimate"""
        prompt = self.get_prompt(prompt_id)
        training = self.list_training_data(prompt_id)
        full_prompt = combine_with_training_data(prompt["prompt_content"], training)
        tokens = estimate_tokens(full_prompt)
        return {
            "prompt_id": prompt_id,
            "full_prompt": full_prompt,
            "variables": extract_prompt_variables(full_prompt),
            "training_data_count": len(training),
            "estimated_tokens": tokens,
            "estimated_cost": round(calculate_estimated_cost(tokens, expected_completion_tokens), 6),
        }

    # ---- training data ----

    def list_training_data(self, prompt_id: str) -> List[Dict[str, Any]]:
        self.get_prompt(prompt_id)
        result = self.supabase.table("system_prompt_training_data")\
            .select("*")\
            .eq("system_prompt_id", prompt_id)\
            .order("created_at")\
            .execute()
        return result.data or []

    def create_training_data(self, prompt_id: str, data: TrainingDataCreate) -> Dict[str, Any]:
        title = (data.title or "").strip()
        content = (data.content or "").strip()
        if not title:
            raise HTTPException(status_code=400, detail="Title is required")
        if not content:
            raise HTTPException(status_code=400, detail="Content is required")

        self.get_prompt(prompt_id)
        result = self.supabase.table("system_prompt_training_data").insert({
            "system_prompt_id": prompt_id,
            "title": title,
            "content": content,
        }).execute()
        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create training data")
        return result.data[0]

    def get_training_data(self, prompt_id: str, training_id: str) -> Dict[str, Any]:
        result = self.supabase.table("system_prompt_training_data")\
            .select("*")\
            .eq("id", training_id)\
            .eq("system_prompt_id", prompt_id)\
            .maybe_single()\
            .execute()
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Training data not found")
        return result.data

    def update_training_data(self, prompt_id: str, training_id: str, data: TrainingDataUpdate) -> Dict[str, Any]:
        update_data = {}
        if data.title is not None:
            if not data.title.strip():
                raise HTTPException(status_code=400, detail="Title cannot be empty")
            update_data["title"] = data.title.strip()
        if data.content is not None:
            if not data.content.strip():
                raise HTTPException(status_code=400, detail="Content cannot be empty")
            update_data["content"] = data.content.strip()
        if not update_data:
            raise HTTPException(status_code=400, detail="At least one field (title or content) is required")

        self.get_training_data(prompt_id, training_id)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        result = self.supabase.table("system_prompt_training_data")\
            .update(update_data)\
            .eq("id", training_id)\
            .execute()
        if not result.data:
            raise HTTPException(status_code=404, detail="Training data not found")
        return result.data[0]

    def delete_training_data(self, prompt_id: str, training_id: str) -> None:
        self.get_training_data(prompt_id, training_id)
        self.supabase.table("system_prompt_training_data").delete().eq("id", training_id).execute()
