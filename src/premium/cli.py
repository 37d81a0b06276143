from __future__ import annotations  # 型注釈の前方参照を許可するため

"""
CLI entrypoint for the premium rate engine.
"""

import argparse  # CLI引数を扱うため
import sys  # エラー出力に使うため
from pathlib import Path  # パスをOSに依存せず扱うため

from .batch import build_premium_sheet, coerce_int, parse_quote_requests, run_quotes
from .config import load_config_file, load_run_settings
from .dataset import load_dataset, read_dataset_file
from .diagnostics import build_execution_context
from .errors import CalculationError, DatasetError
from .models import Dataset
from .outputs import write_quote_log, write_quotes_excel, write_run_summary_json
from .paths import resolve_base_dir_from_config, resolve_path
from .plan_index import describe_plan
from .premium import compute_premium
from .validation import (
    format_validation_issues,
    has_validation_errors,
    lint_dataset,
    validate_config,
)


def _fail(message: str, code: int = 2) -> SystemExit:
    print(message, file=sys.stderr)
    return SystemExit(code)


def _load_dataset_or_exit(path: Path) -> Dataset:  # データセットを読み込み、不正ならCLIエラーにする
    try:
        raw = read_dataset_file(path)
    except ValueError as exc:
        raise _fail(f"error: {exc}") from exc
    dataset = load_dataset(raw)
    if isinstance(dataset, DatasetError):  # 一部のプランだけを採用することはしない
        raise _fail(f"dataset_rejected: [{dataset.code}] {dataset.message}")
    return dataset


def _format_amount(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return str(value)


def run_from_config(config_path: Path) -> int:  # YAML設定を使って一括見積を実行する
    """
    Quote every request in a YAML config and write outputs.
    """
    config_path = config_path.expanduser().resolve()
    try:
        config = load_config_file(config_path)
    except ValueError as exc:
        raise _fail(f"error: {exc}") from exc

    issues = validate_config(config)
    for line in format_validation_issues(issues, prefix="premium.cli run"):
        print(line)
    if has_validation_errors(issues):  # 設定エラーがあれば実行しない
        raise SystemExit(2)

    base_dir = resolve_base_dir_from_config(config_path)  # 相対パス解決の基準ディレクトリ
    settings = load_run_settings(config)
    dataset_path = resolve_path(base_dir, settings.dataset_path)
    dataset = _load_dataset_or_exit(dataset_path)
    for line in format_validation_issues(lint_dataset(dataset), prefix="dataset_lint"):
        print(line)

    try:
        requests = parse_quote_requests(config, base_dir=base_dir)
    except ValueError as exc:
        raise _fail(f"error: {exc}") from exc
    result = run_quotes(dataset, requests)

    excel_path = resolve_path(base_dir, settings.outputs.excel_path)
    log_path = resolve_path(base_dir, settings.outputs.log_path)
    summary_path = resolve_path(base_dir, settings.outputs.run_summary_path)
    input_paths = [dataset_path]
    if settings.quotes_csv_path:
        input_paths.append(resolve_path(base_dir, settings.quotes_csv_path))
    execution_context = build_execution_context(
        base_dir=base_dir,
        input_paths=input_paths,
        config_path=config_path,
        command="premium.cli run",
        argv=[str(config_path)],
    )

    write_quotes_excel(excel_path, dataset, result)
    write_quote_log(log_path, dataset, result)
    write_run_summary_json(
        summary_path,
        config,
        dataset,
        result,
        source="run",
        execution_context=execution_context,
    )

    failures = sum(1 for outcome in result.outcomes if not outcome.ok)
    print("run")
    print(f"quote_count: {len(result.outcomes)}")
    print(f"failure_count: {failures}")
    print(f"wrote_excel: {excel_path}")
    print(f"wrote_log: {log_path}")
    print(f"wrote_run_summary: {summary_path}")
    return 0


def quote_once(dataset_path: Path, plan_key: str, sex: str, age: str, sum_assured: str) -> int:
    dataset = _load_dataset_or_exit(dataset_path)
    age_value = coerce_int(age)
    sum_value = coerce_int(sum_assured)
    result = compute_premium(
        dataset,
        plan_key,
        sex,
        age if age_value is None else age_value,
        sum_assured if sum_value is None else sum_value,
    )
    if isinstance(result, CalculationError):  # 見積できない場合は理由を表示して終了する
        print(f"error: [{result.code}] {result.message}", file=sys.stderr)
        return 1

    print(f"plan: {plan_key}")
    print(f"base_rate: {_format_amount(result.base_rate)}")
    print(f"effective_rate: {_format_amount(result.effective_rate)}")
    print(f"annual: {result.annual_premium}")
    print(f"semi_annual: {result.semi_annual}")
    print(f"quarter: {result.quarter}")
    print(f"month: {result.month}")
    return 0


def list_plans(dataset_path: Path) -> int:
    dataset = _load_dataset_or_exit(dataset_path)
    print(f"dataset_version: {dataset.info.version or 'n/a'}")
    print(f"dataset_last_updated: {dataset.info.last_updated or 'n/a'}")
    for plan in dataset.index:
        hint = describe_plan(plan)
        line = (
            f"{hint.plan_key} name={hint.plan_name} type={hint.calculation_type} "
            f"ages={hint.min_age}-{hint.max_age} min_sum_assured={_format_amount(hint.min_sum_assured)}"
        )
        if hint.table_min_age is not None:  # レートテーブルに存在する年齢帯も示す
            line += f" table_ages={_format_amount(hint.table_min_age)}-{_format_amount(hint.table_max_age)}"
        if hint.discount_tier_count:
            line += f" discount_tiers={hint.discount_tier_count}"
        print(line)
    return 0


def validate_dataset_file(dataset_path: Path, strict: bool) -> int:
    dataset = _load_dataset_or_exit(dataset_path)
    issues = lint_dataset(dataset)
    for line in format_validation_issues(issues, prefix="dataset_lint"):
        print(line)
    print(f"dataset_ok: {len(dataset.plans)} plans")
    if strict and issues:  # strict指定時は警告も失敗として扱う
        return 1
    return 0


def write_premium_sheet(dataset_path: Path, plan_key: str, sum_assured: str, out_path: Path | None) -> int:
    dataset = _load_dataset_or_exit(dataset_path)
    sum_value = coerce_int(sum_assured)
    if sum_value is None:
        raise _fail(f"error: invalid sum assured: {sum_assured}")
    sheet = build_premium_sheet(dataset, plan_key, sum_value)
    if isinstance(sheet, CalculationError):
        print(f"error: [{sheet.code}] {sheet.message}", file=sys.stderr)
        return 1
    if out_path is None:
        print(sheet.to_csv(index=False))
        return 0
    out_path.parent.mkdir(parents=True, exist_ok=True)
    sheet.to_csv(out_path, index=False)
    print(f"wrote: {out_path}")
    return 0


def main(argv: list[str] | None = None) -> int:  # CLIのメイン処理
    parser = argparse.ArgumentParser(description="Premium rate engine CLI.")
    subparsers = parser.add_subparsers(dest="command", required=True)  # サブコマンドを必須化する

    run_parser = subparsers.add_parser("run", help="Quote a batch of requests from a config.")
    run_parser.add_argument("config", type=str, help="Path to config YAML.")

    quote_parser = subparsers.add_parser("quote", help="Quote one request.")
    quote_parser.add_argument("dataset", type=str, help="Path to rate dataset JSON.")
    quote_parser.add_argument("--plan", type=str, required=True)
    quote_parser.add_argument("--sex", type=str, choices=("male", "female"), required=True)
    quote_parser.add_argument("--age", type=str, required=True)
    quote_parser.add_argument("--sum-assured", type=str, required=True)

    plans_parser = subparsers.add_parser("plans", help="List plans with their limits.")
    plans_parser.add_argument("dataset", type=str, help="Path to rate dataset JSON.")

    validate_parser = subparsers.add_parser(
        "validate-dataset", help="Validate a rate dataset and report lint warnings."
    )
    validate_parser.add_argument("dataset", type=str, help="Path to rate dataset JSON.")
    validate_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit non-zero when lint warnings are found.",
    )

    sheet_parser = subparsers.add_parser(
        "premium-sheet", help="Tabulate premiums for every age of a plan."
    )
    sheet_parser.add_argument("dataset", type=str, help="Path to rate dataset JSON.")
    sheet_parser.add_argument("--plan", type=str, required=True)
    sheet_parser.add_argument("--sum-assured", type=str, required=True)
    sheet_parser.add_argument("--out", type=str, default=None)

    args = parser.parse_args(argv)  # CLI引数を解析する
    if args.command == "run":
        return run_from_config(Path(args.config))
    if args.command == "quote":
        return quote_once(
            Path(args.dataset),
            plan_key=str(args.plan),
            sex=str(args.sex),
            age=str(args.age),
            sum_assured=str(args.sum_assured),
        )
    if args.command == "plans":
        return list_plans(Path(args.dataset))
    if args.command == "validate-dataset":
        return validate_dataset_file(Path(args.dataset), strict=bool(args.strict))
    if args.command == "premium-sheet":
        return write_premium_sheet(
            Path(args.dataset),
            plan_key=str(args.plan),
            sum_assured=str(args.sum_assured),
            out_path=Path(args.out) if args.out else None,
        )
    return 1  # 未知のコマンドは異常終了として扱う


if __name__ == "__main__":  # 直接実行された場合のみCLIを起動する
    raise SystemExit(main())
