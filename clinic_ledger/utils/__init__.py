"""Utility functions."""

from clinic_ledger.utils.time import date_to_epoch_millis, epoch_millis_to_date, utc_now

__all__ = ["utc_now", "epoch_millis_to_date", "date_to_epoch_millis"]
