"""
Response helper utilities for handling UUID conversions and model validation
"""
from typing import Any, Dict, List
import uuid
from pydantic import BaseModel


def convert_uuids_to_strings(obj: Any) -> Any:
    """
    Recursively convert UUID objects to strings in any data structure
    """
    if isinstance(obj, uuid.UUID):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: convert_uuids_to_strings(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [convert_uuids_to_strings(item) for item in obj]
    elif hasattr(obj, '__table__'):
        # SQLAlchemy models: only mapped columns, relationships are left out
        return {
            column.key: convert_uuids_to_strings(getattr(obj, column.key))
            for column in obj.__table__.columns
        }
    else:
        return obj


def safe_model_validate(model_class: BaseModel, data: Any) -> BaseModel:
    """
    Safely validate a model by converting UUIDs to strings first
    """
    clean_data = convert_uuids_to_strings(data)
    return model_class.model_validate(clean_data)


def safe_model_validate_list(model_class: BaseModel, data_list: List[Any]) -> List[BaseModel]:
    """
    Safely validate a list of models by converting UUIDs to strings first
    """
    return [safe_model_validate(model_class, item) for item in data_list]


def profile_to_dict(profile) -> Dict[str, Any]:
    """Convert Profile model to dict with string UUIDs"""
    return {
        'id': str(profile.id),
        'user_id': str(profile.user_id),
        'role': profile.role,
        'business_name': profile.business_name,
        'contact_phone': profile.contact_phone,
        'address': profile.address,
        'city': profile.city,
        'trust_score': profile.trust_score,
        'is_verified': profile.is_verified,
        'created_at': profile.created_at,
        'updated_at': profile.updated_at
    }


def group_buy_to_dict(group_buy) -> Dict[str, Any]:
    """Convert GroupBuying model to dict with string UUIDs"""
    return {
        'id': str(group_buy.id),
        'product_id': str(group_buy.product_id),
        'supplier_id': str(group_buy.supplier_id),
        'created_by': str(group_buy.created_by),
        'title': group_buy.title,
        'description': group_buy.description,
        'target_quantity': group_buy.target_quantity,
        'current_quantity': group_buy.current_quantity,
        'discount_percentage': group_buy.discount_percentage,
        'original_price': group_buy.original_price,
        'discounted_price': group_buy.discounted_price,
        'min_participants': group_buy.min_participants,
        'max_participants': group_buy.max_participants,
        'current_participants': group_buy.current_participants,
        'deadline': group_buy.deadline,
        'status': group_buy.status,
        'created_at': group_buy.created_at
    }
