from django.db import models


class Banner(models.Model):
    """Homepage carousel slide"""
    title = models.CharField(max_length=150)
    subtitle = models.CharField(max_length=255, blank=True)
    image_url = models.URLField(max_length=500)
    link = models.CharField(max_length=300, blank=True, help_text="Where to redirect on click")
    position = models.PositiveIntegerField(default=0, help_text="Lower number = shown first")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['position', '-created_at']

    def __str__(self):
        return self.title

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "subtitle": self.subtitle,
            "image": self.image_url,
            "link": self.link,
            "position": self.position,
            "isActive": self.is_active,
        }
