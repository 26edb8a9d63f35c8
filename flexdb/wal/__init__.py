"""Segmented, block-based write-ahead log and its chunk format."""