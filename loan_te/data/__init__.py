"""Data modules."""
from loan_te.data.generation import generate_loans
from loan_te.data.loading import check_schema, load_loans
