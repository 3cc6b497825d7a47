# Order lifecycle, assignment, reconciliation and inventory
