from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(slots=True)
class OgData:
    origin_url: str
    url: str
    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    logo: Optional[str] = None
    error: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"originUrl": self.origin_url, "url": self.url}
        if self.error is not None:
            payload["error"] = self.error
            return payload
        payload.update(
            {
                "title": self.title,
                "description": self.description,
                "image": self.image,
                "logo": self.logo,
            }
        )
        return payload

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "OgData":
        origin_url = str(payload.get("originUrl") or payload.get("url") or "")
        return cls(
            origin_url=origin_url,
            url=str(payload.get("url") or origin_url),
            title=payload.get("title"),
            description=payload.get("description"),
            image=payload.get("image"),
            logo=payload.get("logo"),
            error=payload.get("error"),
        )


@dataclass(slots=True)
class LinkInfo:
    url: str
    type: str
    tweet_id: Optional[str] = None
    codepen_user: Optional[str] = None
    codepen_pen_id: Optional[str] = None

    def as_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"url": self.url, "type": self.type}
        if self.tweet_id:
            payload["tweetId"] = self.tweet_id
        if self.codepen_user and self.codepen_pen_id:
            payload["codepen"] = {"user": self.codepen_user, "penId": self.codepen_pen_id}
        return payload
