"""
Store Report AI Prompts
=======================

Contains prompts for:
- Monthly P&L commentary (restaurant management consultant persona)
"""

# =============================================================================
# MONTHLY COMMENTARY PROMPTS
# =============================================================================

COMMENTARY_SYSTEM_PROMPT = """あなたは飲食業界の経営コンサルタントです。
店舗の月次業績データを読み、経営者が次の一手を決めるための簡潔な分析コメントを書きます。
回答は指定されたJSON配列のみで返してください。"""


FLR_BENCHMARKS = """## FLRコスト基準（飲食業界）
- Fコスト目標: 25-30%
- Lコスト目標: 25-30%
- FLR合計目標: 60-65%（70%超は危険水準）"""


COMMENTARY_INSTRUCTIONS = """## 指示
上記データを分析し、経営者にとって**最も重要な発見・課題・アクション**を2〜4セクションにまとめてください。
- セクション名はデータに応じて動的に決定してください（固定名不要）
- 例: 「原価率の異常上昇」「売上増加の要因分析」「FLRコスト改善提案」「人件費構造の問題点」等
- 各セクションは具体的な数値を引用し、簡潔にまとめてください（各150字以内）
- 改善点には具体的なアクション提案を含めてください

## 出力フォーマット
以下のJSON配列のみを返してください（マークダウンやコードブロック不要）:
[
  {"title": "セクション名1", "content": "本文1"},
  {"title": "セクション名2", "content": "本文2"}
]"""


def _num(value) -> str:
    """Plain number text, 18.0 -> "18"."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def _amount(value) -> str:
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value:,}"


def _signed(value: float, unit: str) -> str:
    text = f"{abs(value):.1f}"
    sign = "-" if value < 0 and text != "0.0" else "+"
    return f"{sign}{text}{unit}"


def get_commentary_user_prompt(report) -> str:
    """
    Generate the user prompt for monthly commentary.

    Args:
        report: ReportData with at least one monthly record

    Returns:
        User prompt string
    """
    current = report.latest_record
    previous = report.previous_record
    change = report.yoy_comparison.change

    lines = [
        "以下の月次業績データを分析し、経営者向けのコメントセクションを生成してください。",
        "",
        "## 店舗情報",
        f"- 店舗名: {report.store_name}",
        f"- 対象月: {report.report_month}",
        "",
        "## 当月実績",
        f"- 売上高: {_amount(current.sales)}千円",
        f"- 営業利益率: {_num(current.profit_rate)}%",
        f"- Fコスト(原価率): {_num(current.f_cost_rate)}%",
        f"- Lコスト(人件費率): {_num(current.l_cost_rate)}%",
        f"- Rコスト(固定費率): {_num(current.r_cost_rate)}%",
        f"- FLR合計: {_num(current.flr_total)}%",
        f"- 営業CF: {_amount(current.operating_cf)}千円",
    ]

    if previous is not None:
        lines += [
            "",
            "## 前月実績",
            f"- 売上高: {_amount(previous.sales)}千円",
            f"- FLR合計: {_num(previous.flr_total)}%",
            f"- 営業利益率: {_num(previous.profit_rate)}%",
        ]

    lines += [
        "",
        "## 前年同月比",
        f"- 売上高変動: {_signed(change.sales_rate, '%')}",
        f"- 営業CF変動: {_signed(change.cf_rate, '%')}",
        f"- 営業利益率変動: {_signed(change.profit_rate_change, 'pt')}",
        "",
        FLR_BENCHMARKS,
        "",
        COMMENTARY_INSTRUCTIONS,
    ]
    return "\n".join(lines)
