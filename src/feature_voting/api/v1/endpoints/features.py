"""Feature endpoints: propose, list, inspect, edit and delete features."""

from fastapi import APIRouter, Query, Response, status

from feature_voting.api.v1.dependencies import (
    CurrentUserDep,
    FeatureServiceDep,
    OptionalUserIdDep,
)
from feature_voting.schemas import (
    FeatureCreate,
    FeatureListResponse,
    FeatureResponse,
    FeatureUpdate,
)
from feature_voting.services import FeatureView

router = APIRouter(prefix="/features", tags=["features"])


@router.get("", response_model=FeatureListResponse)
def list_features(
    features: FeatureServiceDep,
    viewer_id: OptionalUserIdDep,
    page: int = Query(1),
    per_page: int | None = Query(None),
) -> FeatureListResponse:
    """List features, most voted first."""
    result = features.list_features(page=page, per_page=per_page, viewer_id=viewer_id)
    return FeatureListResponse(
        features=[FeatureResponse.model_validate(item) for item in result.items],
        total=result.total,
        page=result.page,
        per_page=result.per_page,
    )


@router.post("", response_model=FeatureResponse, status_code=status.HTTP_201_CREATED)
def create_feature(
    payload: FeatureCreate,
    current_user: CurrentUserDep,
    features: FeatureServiceDep,
) -> FeatureView:
    """Propose a new feature."""
    return features.create_feature(current_user.id, payload.title, payload.description)


@router.get("/{feature_id}", response_model=FeatureResponse)
def get_feature(
    feature_id: int,
    features: FeatureServiceDep,
    viewer_id: OptionalUserIdDep,
) -> FeatureView:
    """Return one feature with the caller's vote status when authenticated."""
    return features.get_feature(feature_id, viewer_id=viewer_id)


@router.put("/{feature_id}", response_model=FeatureResponse)
def update_feature(
    feature_id: int,
    payload: FeatureUpdate,
    current_user: CurrentUserDep,
    features: FeatureServiceDep,
) -> FeatureView:
    """Edit a feature you created."""
    return features.update_feature(
        current_user.id,
        feature_id,
        title=payload.title,
        description=payload.description,
    )


@router.delete("/{feature_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_feature(
    feature_id: int,
    current_user: CurrentUserDep,
    features: FeatureServiceDep,
) -> Response:
    """Delete a feature you created, along with its votes."""
    features.delete_feature(current_user.id, feature_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
