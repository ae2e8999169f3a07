from fitio._types.activitydata import ActivityData, DataFrameSubclass
