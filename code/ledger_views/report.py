import pandas as pd


def save_csv(df, path):
    df.to_csv(path, index=False)

def save_excel(tables, path):
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for name, df in tables.items():
            out = df.copy()
            # openpyxl cannot store pandas' nullable NA
            for col in out.columns:
                if pd.api.types.is_extension_array_dtype(out[col].dtype):
                    out[col] = out[col].astype(object).where(out[col].notna(), None)
            out.to_excel(writer, sheet_name=name[:31], index=False)
