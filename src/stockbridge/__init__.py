"""Product and stock reconciliation between an ERP, a storefront and an inventory ledger."""
