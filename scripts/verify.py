"""
Report Verification Script

Checks the consistency of the exported dashboard workbook.
Run from project root: python scripts/verify.py
"""

import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pandas as pd  # noqa: E402

from restaurant_ops.services.report_exporter import SHEET_COLUMNS, ReportExporter  # noqa: E402


def verify_report() -> bool:
    """Verify the report workbook after an export."""
    exporter = ReportExporter()
    report_file = exporter.report_file

    print("=" * 60)
    print("🔍 DASHBOARD REPORT VERIFICATION")
    print("=" * 60)
    print(f"⏰ Timestamp: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 File: {report_file}")
    print("=" * 60)

    if not report_file.exists():
        print("\n❌ Report file not found!")
        print("   Queue an export first: POST /api/dashboard/export")
        return False

    try:
        sheets = pd.read_excel(report_file, sheet_name=None, engine="openpyxl")
        print(f"\n✅ File loaded successfully!")
    except Exception as e:
        print(f"\n❌ Could not read report file: {e}")
        return False

    ok = True
    missing = [s for s in SHEET_COLUMNS if s not in sheets]
    if missing:
        print(f"\n⚠️ Missing sheets: {missing}")
        ok = False
    else:
        print(f"✅ All {len(SHEET_COLUMNS)} sheets present")

    summary = sheets.get("Summary")
    if summary is None or summary.empty:
        print("\n⚠️ Summary sheet is empty")
        return False
    row = summary.iloc[0]

    print(f"\n📊 SUMMARY ({row['start_date']} → {row['end_date']}):")
    print(f"   Revenue: ${row['total_revenue']:.2f}")
    print(f"   Orders: {row['total_orders']}")
    print(f"   Average: ${row['average_order_value']:.2f}")
    print(f"   New customers: {row['new_customers']}")

    # Every metric sheet must add up to the headline revenue
    checks = {
        "Revenue": "revenue",
        "Heatmap": "revenue",
        "Top Items": "total_revenue",
    }
    for sheet, column in checks.items():
        frame = sheets.get(sheet)
        if frame is None:
            continue
        total = round(float(frame[column].sum()), 2)
        if abs(total - float(row["total_revenue"])) > 0.005:
            print(f"⚠️ {sheet} revenue {total:.2f} does not match summary")
            ok = False
        else:
            print(f"✅ {sheet} revenue matches summary")

    tables = sheets.get("Busiest Tables")
    if tables is not None and int(tables["order_count"].sum()) > int(row["total_orders"]):
        print("⚠️ More table orders than completed orders")
        ok = False

    top = sheets.get("Top Items")
    if top is not None and len(top) > 0:
        print(f"\n📋 TOP ITEMS:")
        print("-" * 60)
        print(top.head(5).to_string(index=False))

    print("\n" + "=" * 60)
    print("✅ VERIFICATION COMPLETE" if ok else "⚠️ VERIFICATION FOUND ISSUES")
    print("=" * 60)

    return ok


if __name__ == "__main__":
    sys.exit(0 if verify_report() else 1)
