"""Shared fixtures: a trimmed-down fiction page in the site's markup."""

from __future__ import annotations

import pytest

FICTION_PAGE = """<!DOCTYPE html>
<html>
<head><title>The Wandering Inn | Royal Road</title></head>
<body>
<div class="fic-header">
  <img class="thumbnail" src="https://www.royalroadcdn.com/public/covers-large/10073-the-wandering-inn.jpg?time=1" />
  <h1 class="font-white">The Wandering Inn</h1>
  <h4 class="font-white">by <span><a href="/profile/20535" class="font-white">pirateaba</a></span></h4>
</div>
<div class="description">
  <div class="hidden-content"><p>An inn is a place to rest.</p>
  <p>Erin Solstice finds herself in a world of monsters &amp; magic.</p></div>
</div>
<div class="fiction-info">
  <span class="label label-default label-sm bg-blue-hoki">Original</span>
  <span class="label label-default label-sm bg-blue-hoki">ONGOING</span>
</div>
<div class="stats-content">
  <ul class="list-unstyled">
    <li data-original-title="Overall Score">Overall Score</li>
    <li><span class="star" data-content="4.61 / 5" aria-label="4.61 stars"></span></li>
    <li data-original-title="Style Score">Style Score</li>
    <li><span class="star" data-content="4.52 / 5" aria-label="4.52 stars"></span></li>
    <li data-original-title="Story Score">Story Score</li>
    <li><span class="star" data-content="4.55 / 5" aria-label="4.55 stars"></span></li>
    <li data-original-title="Grammar Score">Grammar Score</li>
    <li><span class="star" data-content="4.31 / 5" aria-label="4.31 stars"></span></li>
    <li data-original-title="Character Score">Character Score</li>
    <li><span class="star" data-content="4.68 / 5" aria-label="4.68 stars"></span></li>
  </ul>
  <ul class="list-unstyled">
    <li class="bold uppercase">Total Views :</li>
    <li class="bold uppercase font-red-sunglo">69,422,390</li>
    <li class="bold uppercase">Average Views :</li>
    <li class="bold uppercase font-red-sunglo">45,310</li>
    <li class="bold uppercase">Followers :</li>
    <li class="bold uppercase font-red-sunglo">24,861</li>
    <li class="bold uppercase">Favorites :</li>
    <li class="bold uppercase font-red-sunglo">11,452</li>
    <li class="bold uppercase">Ratings :</li>
    <li class="bold uppercase font-red-sunglo">6,003</li>
    <li class="bold uppercase">Pages <li class="bold uppercase font-red-sunglo">14,214</li>
  </ul>
</div>
</body>
</html>
"""


@pytest.fixture
def fiction_page() -> str:
    return FICTION_PAGE
