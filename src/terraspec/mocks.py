"""Hand mocked data-source results to the engine before it reads them."""

from __future__ import annotations

import logging
from typing import Dict, Sequence

from .addresses import Address
from .diagnostics import Diagnostics, warning
from .engine.base import EngineContext
from .spec.model import MockedDataSource
from .values import GenericValue

logger = logging.getLogger("terraspec.mocks")


def inject_mocks(context: EngineContext, mocks: Sequence[MockedDataSource]) -> Diagnostics:
    """Register ``mocks`` as data-source overrides on ``context``.

    A mock for a data source the configuration does not declare is skipped
    with a warning; it never fails the case. When the same data source is
    mocked twice the later declaration wins, also with a warning.
    """

    diagnostics = Diagnostics()
    declared = context.data_sources()
    overrides: Dict[Address, GenericValue] = {}

    for mock in mocks:
        target = str(mock.address)
        key = (mock.address.module, mock.address.type, mock.address.name)
        if declared is not None and key not in declared:
            logger.info("ignoring unused mock %s", target)
            diagnostics.append(
                warning(
                    "mock is unused: the configuration declares no such data source",
                    target=target,
                    location=mock.location,
                )
            )
            continue
        if mock.address in overrides:
            diagnostics.append(
                warning("mock declared more than once; the last declaration wins", target=target, location=mock.location)
            )
        overrides[mock.address] = mock.value

    if overrides:
        logger.debug("injecting %d mock(s)", len(overrides))
        diagnostics.extend(context.set_data_overrides(overrides))
    return diagnostics


__all__ = ["inject_mocks"]
