"""
stats.py
Period-over-period growth formatting for channel reports.
"""

def _pct_change(last_value: float, current_value: float) -> str:
    return f"{(100 * current_value / last_value) - 100:.2f}"

def stat_week(last_week_days, last_week_sum, current_week_days, current_week_sum) -> str:
    # Percent change of a weekly total, each week scaled to 7 days.
    if int(last_week_sum) == 0 or int(last_week_days) == 0 or int(current_week_days) == 0:
        return "No data"
    last_week = 7 * float(last_week_sum) / float(last_week_days)
    current_week = 7 * float(current_week_sum) / float(current_week_days)
    return _pct_change(last_week, current_week)

def stat_month(last_month_days, last_month_sum, current_month_days, current_month_sum,
               last_month_total_days, current_month_total_days) -> str:
    # Percent change of a monthly total, each month scaled to its full length.
    if int(last_month_sum) == 0 or int(last_month_days) == 0 or int(current_month_days) == 0:
        return "No data"
    last_month = float(last_month_total_days) * float(last_month_sum) / float(last_month_days)
    current_month = float(current_month_total_days) * float(current_month_sum) / float(current_month_days)
    return _pct_change(last_month, current_month)

def channel_growth(snapshots) -> dict:
    # Change between the two most recent stored snapshots (newest first).
    if len(snapshots) < 2:
        return {}
    new, old = snapshots[0], snapshots[1]
    return {k: int(new[k] or 0) - int(old[k] or 0) for k in ("videos", "views", "comments", "subscribers", "video_views")}
