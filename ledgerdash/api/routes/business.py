"""Projects, cost centers and clients (business accounts only)."""

from fastapi import APIRouter, Depends

from ledgerdash.api.dependencies import get_components
from ledgerdash.models import (
    Client,
    ClientCreate,
    ClientUpdate,
    CostCenter,
    CostCenterCreate,
    CostCenterUpdate,
    DeleteResult,
    Project,
    ProjectCreate,
    ProjectUpdate,
)
from ledgerdash.orchestrator import AppComponents


router = APIRouter(tags=["business"])


# Projects

@router.get("/accounts/{account_id}/projects", response_model=list[Project])
def list_projects(account_id: int, components: AppComponents = Depends(get_components)):
    return components.business.list_projects(account_id)


@router.post("/accounts/{account_id}/projects", response_model=Project, status_code=201)
def create_project(
    account_id: int,
    payload: ProjectCreate,
    components: AppComponents = Depends(get_components),
):
    return components.business.create_project(account_id, payload)


@router.patch("/projects/{project_id}", response_model=Project)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    components: AppComponents = Depends(get_components),
):
    return components.business.update_project(project_id, payload)


@router.delete("/projects/{project_id}", response_model=DeleteResult)
def delete_project(project_id: int, components: AppComponents = Depends(get_components)):
    return components.business.delete_project(project_id)


# Cost centers

@router.get("/accounts/{account_id}/cost-centers", response_model=list[CostCenter])
def list_cost_centers(account_id: int, components: AppComponents = Depends(get_components)):
    return components.business.list_cost_centers(account_id)


@router.post("/accounts/{account_id}/cost-centers", response_model=CostCenter, status_code=201)
def create_cost_center(
    account_id: int,
    payload: CostCenterCreate,
    components: AppComponents = Depends(get_components),
):
    return components.business.create_cost_center(account_id, payload)


@router.patch("/cost-centers/{cost_center_id}", response_model=CostCenter)
def update_cost_center(
    cost_center_id: int,
    payload: CostCenterUpdate,
    components: AppComponents = Depends(get_components),
):
    return components.business.update_cost_center(cost_center_id, payload)


@router.delete("/cost-centers/{cost_center_id}", response_model=DeleteResult)
def delete_cost_center(cost_center_id: int, components: AppComponents = Depends(get_components)):
    return components.business.delete_cost_center(cost_center_id)


# Clients

@router.get("/accounts/{account_id}/clients", response_model=list[Client])
def list_clients(account_id: int, components: AppComponents = Depends(get_components)):
    return components.business.list_clients(account_id)


@router.post("/accounts/{account_id}/clients", response_model=Client, status_code=201)
def create_client(
    account_id: int,
    payload: ClientCreate,
    components: AppComponents = Depends(get_components),
):
    return components.business.create_client(account_id, payload)


@router.patch("/clients/{client_id}", response_model=Client)
def update_client(
    client_id: int,
    payload: ClientUpdate,
    components: AppComponents = Depends(get_components),
):
    return components.business.update_client(client_id, payload)


@router.delete("/clients/{client_id}", response_model=DeleteResult)
def delete_client(client_id: int, components: AppComponents = Depends(get_components)):
    return components.business.delete_client(client_id)
