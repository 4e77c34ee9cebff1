import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response, status

from order_api.api.dependencies import get_order_repository
from order_api.db.repository import OrderRepository
from order_api.schemas import CreateOrderRequest, OrderResponse, UpdateOrderRequest

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/orders",
    tags=["orders"],
)


@router.get("", response_model=List[OrderResponse])
def list_orders(repo: OrderRepository = Depends(get_order_repository)):
    return repo.list_all()


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    responses={404: {"description": "Order not found"}},
)
def get_order(order_id: int, repo: OrderRepository = Depends(get_order_repository)):
    order = repo.get_by_id(order_id)
    if order is None:
        logger.debug("Order %s not found", order_id)
        return Response(status_code=status.HTTP_404_NOT_FOUND)
    return order


@router.post(
    "",
    response_model=OrderResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Validation error"}},
)
def create_order(
    body: CreateOrderRequest,
    request: Request,
    response: Response,
    repo: OrderRepository = Depends(get_order_repository),
):
    order = repo.insert(body.customer_name, body.total_amount)
    response.headers["Location"] = str(request.url_for("get_order", order_id=order.id))
    logger.info("Created order %s", order.id)
    return order


@router.put(
    "/{order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        400: {"description": "Validation error"},
        404: {"description": "Order not found"},
        409: {"description": "Concurrent modification"},
    },
)
def update_order(
    order_id: int,
    body: UpdateOrderRequest,
    repo: OrderRepository = Depends(get_order_repository),
):
    order = repo.update(order_id, body.customer_name, body.total_amount)
    if order is None:
        logger.debug("Order %s not found for update", order_id)
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    logger.info("Updated order %s", order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"description": "Order not found"}},
)
def delete_order(order_id: int, repo: OrderRepository = Depends(get_order_repository)):
    if not repo.delete(order_id):
        logger.debug("Order %s not found for delete", order_id)
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    logger.info("Deleted order %s", order_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
