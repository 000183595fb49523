"""YouTube domain - followed channels and their videos."""

from .channels import (
    NewVideo,
    add_channel,
    add_videos,
    delete_channel,
    extract_handle,
    extract_video_id,
    get_video_url,
    list_channels,
    lookup_video_by_provider_id,
    parse_channel_url,
    update_channel_last_fetched,
    video_count_for_channel,
    video_ids_for_channel,
    videos_for_channel,
)

__all__ = [
    "NewVideo",
    "add_channel",
    "add_videos",
    "delete_channel",
    "extract_handle",
    "extract_video_id",
    "get_video_url",
    "list_channels",
    "lookup_video_by_provider_id",
    "parse_channel_url",
    "update_channel_last_fetched",
    "video_count_for_channel",
    "video_ids_for_channel",
    "videos_for_channel",
]
