"""
Known meta data provider configurations.

Role configs (relations, tags) share the hostname of their main provider
but live in their own working directory.
"""

from app.models.schemas import MetaDataProviderConfig

ANIDB = MetaDataProviderConfig(
    hostname="anidb.net",
    file_suffix="html",
    data_download_link_template="https://{hostname}/anime/{id}",
)

ANILIST = MetaDataProviderConfig(
    hostname="anilist.co",
    file_suffix="json",
)

ANIME_PLANET = MetaDataProviderConfig(
    hostname="anime-planet.com",
    file_suffix="html",
)

ANIMENEWSNETWORK = MetaDataProviderConfig(
    hostname="animenewsnetwork.com",
    file_suffix="html",
    anime_link_template="https://www.{hostname}/encyclopedia/anime.php?id={id}",
)

ANISEARCH = MetaDataProviderConfig(
    hostname="anisearch.com",
    file_suffix="html",
)

ANISEARCH_RELATIONS = MetaDataProviderConfig(
    hostname="anisearch.com",
    file_suffix="html",
    directory_name="anisearch.com-relations",
    data_download_link_template="https://{hostname}/anime/{id}/relations",
)

KITSU = MetaDataProviderConfig(
    hostname="kitsu.app",
    file_suffix="json",
    data_download_link_template="https://{hostname}/api/edge/anime?filter[id]={id}",
)

KITSU_RELATIONS = MetaDataProviderConfig(
    hostname="kitsu.app",
    file_suffix="json",
    directory_name="kitsu.app-relations",
    data_download_link_template="https://{hostname}/api/edge/media-relationships?filter[source_id]={id}",
)

KITSU_TAGS = MetaDataProviderConfig(
    hostname="kitsu.app",
    file_suffix="json",
    directory_name="kitsu.app-tags",
    data_download_link_template="https://{hostname}/api/edge/anime/{id}/categories",
)

LIVECHART = MetaDataProviderConfig(
    hostname="livechart.me",
    file_suffix="html",
    anime_link_template="https://www.{hostname}/anime/{id}",
)

MYANIMELIST = MetaDataProviderConfig(
    hostname="myanimelist.net",
    file_suffix="html",
)

NOTIFY = MetaDataProviderConfig(
    hostname="notify.moe",
    file_suffix="json",
)

NOTIFY_RELATIONS = MetaDataProviderConfig(
    hostname="notify.moe",
    file_suffix="json",
    directory_name="notify.moe-relations",
    data_download_link_template="https://{hostname}/api/animerelations/{id}",
)

SIMKL = MetaDataProviderConfig(
    hostname="simkl.com",
    file_suffix="html",
)

# Providers whose working directories hold the files checked for conversion status
MAIN_PROVIDER_CONFIGS = (
    ANIDB,
    ANILIST,
    ANIME_PLANET,
    ANIMENEWSNETWORK,
    ANISEARCH,
    KITSU,
    LIVECHART,
    MYANIMELIST,
    NOTIFY,
    SIMKL,
)

# Role configs a main provider depends on for conversion
DEPENDENT_PROVIDER_CONFIGS = {
    ANISEARCH: (ANISEARCH_RELATIONS,),
    KITSU: (KITSU_RELATIONS, KITSU_TAGS),
    NOTIFY: (NOTIFY_RELATIONS,),
}
