"""
Vault analytics

vault 이벤트 로그를 pandas DataFrame으로 변환하여 오프체인 수수료/성과를 추적합니다.
- rebalance_frame: 리밸런스 스냅샷과 수수료 분배
- flow_frame: 예치/인출 흐름
- share_price: 지분 1단위의 token1 가치
"""

from typing import Iterable

import pandas as pd

from .constants import PRECISION
from .math.fee_math import fee_recipient_cut
from .vault.events import DepositEvent, RebalanceEvent, WithdrawEvent

REBALANCE_COLUMNS = [
    'tick', 'total_amount0', 'total_amount1', 'fee_amount0', 'fee_amount1', 'total_supply',
    'recipient_fee0', 'recipient_fee1', 'vault_fee0', 'vault_fee1',
]

FLOW_COLUMNS = ['event', 'sender', 'to', 'shares', 'amount0', 'amount1', 'share_delta']


def rebalance_frame(events: Iterable[object]) -> pd.DataFrame:
    """RebalanceEvent마다 한 행

    recipient_fee는 fee recipient가 받은 floor(fee * 3 / 20),
    vault_fee는 vault에 남아 재투자된 나머지입니다.
    """
    rows = []
    for event in events:
        if not isinstance(event, RebalanceEvent):
            continue
        cut0 = fee_recipient_cut(event.fee_amount0)
        cut1 = fee_recipient_cut(event.fee_amount1)
        rows.append({
            'tick': event.tick,
            'total_amount0': event.total_amount0,
            'total_amount1': event.total_amount1,
            'fee_amount0': event.fee_amount0,
            'fee_amount1': event.fee_amount1,
            'total_supply': event.total_supply,
            'recipient_fee0': cut0,
            'recipient_fee1': cut1,
            'vault_fee0': event.fee_amount0 - cut0,
            'vault_fee1': event.fee_amount1 - cut1,
        })

    df = pd.DataFrame(rows, columns=REBALANCE_COLUMNS)
    df.index.name = 'rebalance'
    return df


def flow_frame(events: Iterable[object]) -> pd.DataFrame:
    """예치/인출 이벤트마다 한 행 (share_delta: 예치 +, 인출 -)"""
    rows = []
    for event in events:
        if isinstance(event, DepositEvent):
            sign = 1
        elif isinstance(event, WithdrawEvent):
            sign = -1
        else:
            continue
        row = event.to_dict()
        row['share_delta'] = sign * event.shares
        rows.append(row)

    return pd.DataFrame(rows, columns=FLOW_COLUMNS)


def share_price(total0: int, total1: int, price: int, total_supply: int) -> float:
    """지분 1단위의 token1 가치

    Args:
        total0, total1: vault 총 자산 (get_total_amounts)
        price: token0 가격 (PRECISION 고정소수점, price_from_sqrt_ratio)
        total_supply: 지분 총량

    Returns:
        token1 단위 지분 가격. 지분이 없으면 0.0
    """
    if total_supply == 0:
        return 0.0
    value_in_token1 = total0 * price // PRECISION + total1
    return value_in_token1 / total_supply
