from __future__ import annotations

from fastapi import APIRouter, Depends

from schoolfund.auth import AuthUser
from schoolfund.dependencies import get_current_user, get_school_service
from schoolfund.schemas import MessageResponse, SchoolCreate, SchoolUpdate
from schoolfund.schools import SchoolService

router = APIRouter()


@router.post("", status_code=201)
def create_school(
    payload: SchoolCreate,
    user: AuthUser = Depends(get_current_user),
    schools: SchoolService = Depends(get_school_service),
):
    return schools.create_school(payload, user)


@router.get("")
def get_own_school(
    user: AuthUser = Depends(get_current_user),
    schools: SchoolService = Depends(get_school_service),
):
    return schools.get_school(user.uid)


@router.get("/{school_id}")
def get_school(
    school_id: str,
    user: AuthUser = Depends(get_current_user),
    schools: SchoolService = Depends(get_school_service),
):
    return schools.get_school(school_id)


@router.put("")
def update_own_school(
    payload: SchoolUpdate,
    user: AuthUser = Depends(get_current_user),
    schools: SchoolService = Depends(get_school_service),
):
    return schools.update_school(user.uid, payload, user)


@router.put("/{school_id}")
def update_school(
    school_id: str,
    payload: SchoolUpdate,
    user: AuthUser = Depends(get_current_user),
    schools: SchoolService = Depends(get_school_service),
):
    return schools.update_school(school_id, payload, user)


@router.delete("/{school_id}", response_model=MessageResponse)
def delete_school(
    school_id: str,
    user: AuthUser = Depends(get_current_user),
    schools: SchoolService = Depends(get_school_service),
):
    schools.delete_school(school_id, user)
    return MessageResponse(message="School deleted successfully", id=school_id)
