"""Multi-version revision index: revisions, generations, key indexes and trees of them."""