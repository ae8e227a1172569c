"""Ingestion pipeline — source adapters, budget gating, and persistence."""

from fluxa.ingestion.api_sports_adapter import ApiSportsAdapter
from fluxa.ingestion.biz_news_adapter import BizNewsAdapter
from fluxa.ingestion.football_adapter import FreeApiLiveFootballDataAdapter
from fluxa.ingestion.games_details_adapter import GamesDetailsAdapter
from fluxa.ingestion.google_news_adapter import GoogleNewsAdapter
from fluxa.ingestion.mediastack_adapter import MediastackRapidApiAdapter
from fluxa.ingestion.newsapi_adapter import NewsApiRapidApiAdapter
from fluxa.ingestion.newsx_adapter import NewsXAdapter
from fluxa.ingestion.rapidapi_sports_adapter import RapidApiSportsAdapter
from fluxa.ingestion.registry import register_adapter, retire_source
from fluxa.ingestion.soccer_open_data_adapter import SoccerSportsOpenDataAdapter
from fluxa.ingestion.sports_news_adapter import RealTimeSportsNewsAdapter
from fluxa.ingestion.therundown_adapter import TheRundownAdapter
from fluxa.ingestion.ticketmaster_adapter import TicketmasterAdapter
from fluxa.ingestion.tmdb_adapter import TmdbAdapter
from fluxa.ingestion.webit_adapter import WebitNewsSearchAdapter

register_adapter("mediastack-rapidapi", MediastackRapidApiAdapter)
register_adapter("newsapi-rapidapi", NewsApiRapidApiAdapter)
register_adapter("newsx", NewsXAdapter)
register_adapter("biz-news-api", BizNewsAdapter)
register_adapter("webit-news-search", WebitNewsSearchAdapter)
register_adapter("google-news", GoogleNewsAdapter)
register_adapter("real-time-sports-news-api", RealTimeSportsNewsAdapter)
register_adapter("rapidapi-sports", RapidApiSportsAdapter)
register_adapter("free-api-live-football-data", FreeApiLiveFootballDataAdapter)
register_adapter("soccer-sports-open-data", SoccerSportsOpenDataAdapter)
register_adapter("games-details", GamesDetailsAdapter)
register_adapter("therundown", TheRundownAdapter)
register_adapter("tmdb", TmdbAdapter)
register_adapter("ticketmaster", TicketmasterAdapter)
register_adapter("api-sports", ApiSportsAdapter)

retire_source("mediastack", "mediastack-rapidapi")
retire_source("newsapi", "newsapi-rapidapi")
retire_source("sportspage-feeds", "rapidapi-sports")
