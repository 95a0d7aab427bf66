"""Excel exports of financial and settlement data."""
