"""
Category Rules API Routes

Manages the keyword rules that pre-fill categories on imported lines.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from statement_import import CategoryRuleLookup

from ..auth import get_current_user_id
from ..dependencies import get_category_lookup
from ..schemas import CategoryRuleCreate, CategoryRuleOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rules", tags=["rules"])


@router.get("", response_model=list[CategoryRuleOut])
async def list_rules(
    user_id: str = Depends(get_current_user_id),
    lookup: CategoryRuleLookup = Depends(get_category_lookup),
) -> list[CategoryRuleOut]:
    """List the user's rules ordered by keyword."""
    return [CategoryRuleOut.model_validate(rule) for rule in lookup.list_rules(user_id)]


@router.post("", response_model=CategoryRuleOut, status_code=status.HTTP_201_CREATED)
async def create_rule(
    payload: CategoryRuleCreate,
    user_id: str = Depends(get_current_user_id),
    lookup: CategoryRuleLookup = Depends(get_category_lookup),
) -> CategoryRuleOut:
    """Create a keyword rule."""
    if lookup.get_category(payload.category_id, user_id) is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Categoria nao encontrada")

    rule = lookup.add_rule(payload.keyword, payload.category_id, user_id)
    return CategoryRuleOut.model_validate(rule)


@router.post("/defaults")
async def install_default_rules(
    user_id: str = Depends(get_current_user_id),
    lookup: CategoryRuleLookup = Depends(get_category_lookup),
) -> dict:
    """Install the default categories and rules for a new user."""
    created = lookup.initialize_user_defaults(user_id)
    return {"created": created}


@router.delete("")
async def delete_rule(
    rule_id: str = Query(..., alias="id"),
    user_id: str = Depends(get_current_user_id),
    lookup: CategoryRuleLookup = Depends(get_category_lookup),
) -> dict:
    """Delete a keyword rule."""
    if not lookup.delete_rule(rule_id, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Regra nao encontrada")

    logger.info(f"Deleted category rule {rule_id} for {user_id}")
    return {"success": True}
