import numpy as np
import pandas as pd


def load_sample_sales_data(seed: int = 7) -> pd.DataFrame:
    """Synthetic monthly store sales used by the demo mode of the app."""
    rng = np.random.default_rng(seed)

    # -----------------------------------------
    # 1. Fixed store list
    # -----------------------------------------
    stores = pd.DataFrame({
        "store": ["North", "South", "East", "West"],
        "region": ["urban", "rural", "urban", "suburban"],
        "base_revenue": [12000, 7000, 10000, 8500],
    })

    # -----------------------------------------
    # 2. Twelve months of 2025, one row per store and product line
    # -----------------------------------------
    months = pd.date_range("2025-01-01", periods=12, freq="MS")
    products = ["hardware", "software", "services"]

    rows = []
    for month in months:
        for _, store in stores.iterrows():
            for product in products:
                revenue = store["base_revenue"] / len(products) * (1 + rng.normal(0, 0.15))
                rows.append({
                    "month": month.strftime("%Y-%m-%d"),
                    "store": store["store"],
                    "region": store["region"],
                    "product": product,
                    "units": int(max(rng.poisson(40), 1)),
                    "revenue": round(float(revenue), 2),
                    "returns": int(rng.poisson(2)),
                })

    # -----------------------------------------
    # 3. Sort by month + store
    # -----------------------------------------
    sales = pd.DataFrame(rows)
    return sales.sort_values(["month", "store", "product"]).reset_index(drop=True)


def load_sample_records(seed: int = 7) -> list:
    return load_sample_sales_data(seed).to_dict(orient="records")
