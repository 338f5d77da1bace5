"""
Force Open / Closed activities to be the first / last event of every case.

Some incidents log Open or Closed with the same DateStamp as intermediate
activities, so tools that order events by timestamp can put them in the middle
of a trace. Open is moved to one minute before the case's earliest record and
Closed to one minute after its latest record; everything else is untouched.
"""

import pandas as pd

from incident_eventlog import EventLog


OPEN_ACTIVITY = "Open"
CLOSED_ACTIVITY = "Closed"
MARGIN = pd.Timedelta(minutes=1)


def fix_open_closed(
    log: EventLog,
    open_activity: str = OPEN_ACTIVITY,
    closed_activity: str = CLOSED_ACTIVITY,
    margin: pd.Timedelta = MARGIN,
) -> EventLog:
    data = log.data.copy()
    if data.empty:
        return log.with_data(data)

    ts = data.groupby(log.case_id, observed=True)[log.timestamp]
    earliest = ts.transform("min") - margin
    latest = ts.transform("max") + margin

    acts = data[log.activity_id].astype(str)
    is_open = acts == open_activity
    is_closed = acts == closed_activity

    data[log.timestamp] = data[log.timestamp].mask(is_open, earliest).mask(is_closed, latest)

    print(f"[Open/Closed] Moved {int(is_open.sum()):,} '{open_activity}' and "
          f"{int(is_closed.sum()):,} '{closed_activity}' records to case bounds")
    return log.with_data(data)
