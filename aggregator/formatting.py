"""
Output Formatting

USD 금액을 "$1,234,567.89" 형식으로 (센트 단위 ROUND_HALF_UP).
"""

from decimal import ROUND_HALF_UP, Decimal

from aggregator.engine import AggregationReport
from aggregator.types import ValuationResult

CENT = Decimal("0.01")


def format_usd(amount: Decimal) -> str:
    """Decimal 금액 → '$1,234.57'"""
    rounded = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    sign = "-" if rounded < 0 else ""
    return f"{sign}${abs(rounded):,.2f}"


def _format_line(verb: str, quantity: str, asset: str, result: ValuationResult) -> str:
    line = f"To {verb} {quantity} {asset}: {format_usd(result.cost)}"
    if result.is_partial:
        line += f" (partial fill: only {result.filled_quantity} {asset} available)"
    return line


def format_report(report: AggregationReport, quantity: str, asset: str = "BTC") -> str:
    """
    CLI 출력 문자열

    Args:
        report: 엔진 실행 결과
        quantity: 사용자가 입력한 수량 문자열 (입력 그대로 표시)
        asset: 기초 자산 표기
    """
    return "\n".join([
        _format_line("buy", quantity, asset, report.buy),
        _format_line("sell", quantity, asset, report.sell),
    ])
