from typing import Iterator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from order_api.db.repository import OrderRepository


def get_db(request: Request) -> Iterator[Session]:
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def get_order_repository(session: Session = Depends(get_db)) -> OrderRepository:
    return OrderRepository(session)
