"""Example: Fiscal period sales report

This example demonstrates how to roll the cleaned sales facts up by fiscal
period and quarter, compute year-to-date totals, and list the top products.

Prerequisites:
- Fact CSVs under data/b_clean/sales/ (any known export header layout)
"""

from pathlib import Path

from clearvue_core import DataPaths
from clearvue_core.sales import aggregate_ytd, get_rollup, latest_period, load_facts
from clearvue_core.sales.marts import fetch_mart

data_root = Path("data")
paths = DataPaths.from_root(data_root)

facts = load_facts(paths)
print(f"Loaded {len(facts)} facts")

# Fiscal period rollup (Saturday-to-Friday months)
by_period = get_rollup(facts, grain="period")
print("\nRevenue by fiscal period:")
print(by_period)

by_quarter = get_rollup(facts, grain="quarter")
print("\nRevenue by fiscal quarter:")
print(by_quarter)

# Year to date through the latest period in the data
as_of = latest_period(facts)
if as_of is not None:
    ytd = aggregate_ytd(facts, as_of)
    print(f"\nYTD {ytd.year} through {as_of.label}: {ytd.ytd_revenue:,.2f}")

top_products = get_rollup(facts, grain="product", n=10)
print("\nTop 10 products:")
print(top_products)

# Persist the period mart (rebuilt only when the fact files change)
mart = fetch_mart(paths, grain="period")
print(f"\nPeriod mart: {len(mart)} rows in {paths.mart_sales}")
