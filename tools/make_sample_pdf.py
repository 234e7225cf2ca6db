from __future__ import annotations

import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path when running this script directly
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from invoice_pdf.core.settings import Settings
from invoice_pdf.export import build_invoice_pdf

# Generates a multi-page sample invoice PDF for README/demo purposes.


def main(n_items: int = 45) -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    out_dir = ROOT / "assets" / "samples"
    out_dir.mkdir(parents=True, exist_ok=True)
    out_pdf = out_dir / "sample-invoice.pdf"

    sample = {
        "meta": {
            "number": "INV-20260105-001",
            "invoice_date": "05/01/2026",
            "due_date": "19/01/2026",
            "payment_terms": "14 days",
            "currency": "AUD",
        },
        "seller": {
            "name": "(Business Name)",
            "company_name": "(Company Pty Ltd)",
            "address_lines": ["(Street)", "(City) NSW 2000"],
            "email": "billing@example.test",
        },
        "bill_to": {"name": "(Customer Name)", "address_lines": "(Street)\n(City)"},
        "ship_to": {"name": "(Site Contact)", "address_lines": ["(Site Address)"]},
        "items": [
            {"description": f"Sample item {i + 1}", "quantity": (i % 3) + 1, "unit_price": 25.0 * ((i % 5) + 1)}
            for i in range(n_items)
        ],
        "adjustments": {"discount_amount": 50.0, "tax_enabled": True, "tax_rate_percent": 10, "amount_paid": 200.0},
        "bank": {"bank_name": "(Bank)", "account_name": "(Account Name)", "bsb_sort_code": "000-000", "account_number": "00000000"},
        "payment_instructions": "Please use the invoice number as the payment reference.",
        "notes": "Thank you for your business!",
        "signatory_name": "(Signatory)",
    }

    build_invoice_pdf(out_pdf, sample, Settings())
    print(f"Wrote sample to: {out_pdf}")


if __name__ == "__main__":
    main(int(sys.argv[1]) if len(sys.argv) > 1 else 45)
