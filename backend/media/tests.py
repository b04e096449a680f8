"""
Test suite for the media module
Tests: image compression, blob storage wrapper, variant galleries and upload API
"""
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from types import SimpleNamespace
from unittest import mock
from azure.core.exceptions import AzureError, ResourceNotFoundError
from PIL import Image
import io
import re
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.media.gallery import (
    SHARED_ORDER_OFFSET, add_variant_image, get_variant_images_by_filename, link_shared_media,
    reorder_variant_images, variant_key_for,
)
from backend.media.image_compression import (
    ImageCompressionError, compress_image, format_file_size, generate_optimized_filename,
)
from backend.media.models import SharedMedia, VariantImage, VariantSharedMedia
from backend.media.storage import ObjectStorage, StorageError, container_name


def make_image_bytes(width, height, mode='RGB', image_format='PNG'):
    buffer = io.BytesIO()
    Image.new(mode, (width, height)).save(buffer, format=image_format)
    return buffer.getvalue()


class ImageCompressionTests(SimpleTestCase):
    """Test downscaling and re-encoding uploads"""

    def test_large_image_is_downscaled_to_webp(self):
        data, content_type = compress_image(make_image_bytes(4000, 2000))

        self.assertEqual(content_type, 'image/webp')
        img = Image.open(io.BytesIO(data))
        self.assertEqual(img.format, 'WEBP')
        self.assertEqual(img.size, (1920, 960))

    def test_tall_image_is_bounded_by_height(self):
        data, _ = compress_image(make_image_bytes(1000, 3000))
        self.assertEqual(Image.open(io.BytesIO(data)).size, (360, 1080))

    def test_small_image_is_not_upscaled(self):
        data, _ = compress_image(make_image_bytes(100, 50))
        self.assertEqual(Image.open(io.BytesIO(data)).size, (100, 50))

    def test_palette_image_to_jpeg(self):
        data, content_type = compress_image(make_image_bytes(64, 64, mode='P'), image_format='jpeg')

        self.assertEqual(content_type, 'image/jpeg')
        self.assertEqual(Image.open(io.BytesIO(data)).mode, 'RGB')

    def test_unreadable_bytes(self):
        with self.assertRaises(ImageCompressionError):
            compress_image(b'not an image')

    def test_unsupported_format(self):
        with self.assertRaises(ImageCompressionError):
            compress_image(make_image_bytes(10, 10), image_format='gif')

    def test_format_file_size(self):
        self.assertEqual(format_file_size(0), '0 Bytes')
        self.assertEqual(format_file_size(500), '500 Bytes')
        self.assertEqual(format_file_size(1536), '1.5 KB')
        self.assertEqual(format_file_size(1048576), '1 MB')

    def test_generate_optimized_filename(self):
        filename = generate_optimized_filename('My Photo.JPG')
        self.assertRegex(filename, r'^\d+-my-photo-[0-9a-f]{10}\.webp$')


class ObjectStorageTests(SimpleTestCase):
    """Test the blob storage wrapper against a mocked Azure client"""

    def setUp(self):
        self.client = mock.Mock()
        self.storage = ObjectStorage(client=self.client, account_name='jove', account_key='key', connection_string='')

    def test_container_name(self):
        self.assertEqual(container_name('customization_options'), 'customization-options')
        self.assertEqual(container_name('item-pictures'), 'item-pictures')

    def test_public_url(self):
        url = self.storage.get_public_url('customization_options', '/necklaces/white gold.webp')
        self.assertEqual(url, 'https://jove.blob.core.windows.net/customization-options/necklaces/white%20gold.webp')

    def test_list_files_direct_children_sorted(self):
        container = self.client.get_container_client.return_value
        container.list_blobs.return_value = [
            SimpleNamespace(name='necklaces/b.webp'),
            SimpleNamespace(name='necklaces/'),
            SimpleNamespace(name='necklaces/archive/old.webp'),
            SimpleNamespace(name='necklaces/a.PNG'),
        ]

        self.assertEqual(self.storage.list_files('customization-item', 'necklaces/'), ['a.PNG', 'b.webp'])
        self.client.get_container_client.assert_called_once_with('customization-item')
        container.list_blobs.assert_called_once_with(name_starts_with='necklaces/')

    def test_list_files_failure(self):
        self.client.get_container_client.return_value.list_blobs.side_effect = AzureError('boom')
        with self.assertRaises(StorageError):
            self.storage.list_files('customization-item', 'necklaces')

    def test_upload_returns_public_url(self):
        url = self.storage.upload('item-pictures', 'rings/a.webp', b'data', content_type='image/webp')

        self.assertEqual(url, 'https://jove.blob.core.windows.net/item-pictures/rings/a.webp')
        self.client.get_blob_client.assert_called_once_with('item-pictures', 'rings/a.webp')
        self.assertTrue(self.client.get_blob_client.return_value.upload_blob.called)

    def test_delete_missing_blob_is_ignored(self):
        self.client.get_blob_client.return_value.delete_blob.side_effect = ResourceNotFoundError('gone')
        self.storage.delete('item-pictures', 'rings/a.webp')

    def test_unconfigured_storage(self):
        storage = ObjectStorage(account_name='', account_key='', connection_string='')
        with self.assertRaises(StorageError):
            storage.list_files('item-pictures')


class VariantGalleryTests(TestCase):
    """Test gallery ordering and shared media links"""

    def setUp(self):
        self.key = 'necklace-black_leather-emerald-white_gold'

    def test_variant_key_for(self):
        self.assertEqual(variant_key_for(f'{self.key}.webp'), self.key)

    def test_add_appends_and_primary_is_unique(self):
        first = add_variant_image(self.key, 'https://cdn.test/1.webp', is_primary=True)
        second = add_variant_image(self.key, 'https://cdn.test/2.webp')
        third = add_variant_image(self.key, 'https://cdn.test/3.webp', is_primary=True)

        self.assertEqual([first.display_order, second.display_order, third.display_order], [0, 1, 2])
        first.refresh_from_db()
        self.assertFalse(first.is_primary)
        self.assertEqual(VariantImage.objects.filter(variant_key=self.key, is_primary=True).count(), 1)

    def test_gallery_order(self):
        """Test primary first, then own pictures by order, then shared media"""
        add_variant_image(self.key, 'https://cdn.test/1.webp')
        add_variant_image(self.key, 'https://cdn.test/2.webp', is_primary=True)
        add_variant_image(self.key, 'https://cdn.test/3.webp')
        packaging = SharedMedia.objects.create(name='Box', image_url='https://cdn.test/box.webp')
        link_shared_media(self.key, packaging)
        add_variant_image('other-variant', 'https://cdn.test/other.webp')

        self.assertEqual(get_variant_images_by_filename(f'{self.key}.PNG'), [
            'https://cdn.test/2.webp',
            'https://cdn.test/1.webp',
            'https://cdn.test/3.webp',
            'https://cdn.test/box.webp',
        ])

    def test_empty_gallery(self):
        self.assertEqual(get_variant_images_by_filename('missing.webp'), [])

    def test_reorder(self):
        images = [add_variant_image(self.key, f'https://cdn.test/{index}.webp') for index in range(3)]
        reorder_variant_images(self.key, [images[2].id, images[0].id, images[1].id])

        ordered = VariantImage.objects.filter(variant_key=self.key).order_by('display_order')
        self.assertEqual([image.id for image in ordered], [images[2].id, images[0].id, images[1].id])

    def test_reorder_rejects_foreign_ids(self):
        image = add_variant_image(self.key, 'https://cdn.test/1.webp')
        other = add_variant_image('other-variant', 'https://cdn.test/2.webp')

        with self.assertRaises(VariantImage.DoesNotExist):
            reorder_variant_images(self.key, [image.id, other.id])

    def test_link_shared_media_orders_and_updates(self):
        box = SharedMedia.objects.create(name='Box', image_url='https://cdn.test/box.webp')
        model = SharedMedia.objects.create(name='Model', image_url='https://cdn.test/model.webp')

        self.assertEqual(link_shared_media(self.key, box).display_order, 0)
        self.assertEqual(link_shared_media(self.key, model).display_order, 1)

        link = link_shared_media(self.key, box, display_order=5)
        self.assertEqual(link.display_order, 5)
        self.assertEqual(VariantSharedMedia.objects.filter(variant_key=self.key).count(), 2)
        self.assertLess(link.display_order, SHARED_ORDER_OFFSET)


class MediaAPITests(TestCase):
    """Test upload and gallery endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(TestDataFactory.create_admin())
        self.storage = mock.Mock()
        self.storage.upload.side_effect = lambda bucket, path, data, content_type=None: f'https://cdn.test/{bucket}/{path}'
        patcher = mock.patch('backend.media.views.get_storage', return_value=self.storage)
        patcher.start()
        self.addCleanup(patcher.stop)

    def upload_file(self, data=None, name='photo.png'):
        return SimpleUploadedFile(name, data if data is not None else make_image_bytes(2400, 1200), content_type='image/png')

    def test_upload_compresses_by_default(self):
        response = self.client.post('/api/v1/media/upload/', {
            'file': self.upload_file(),
            'bucket': 'customization-item',
            'folder': 'necklaces',
        }, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['content_type'], 'image/webp')
        self.assertTrue(re.match(r'^necklaces/\d+-photo-[0-9a-f]{10}\.webp$', response.data['path']))
        bucket, path, data = self.storage.upload.call_args[0]
        self.assertEqual(bucket, 'customization-item')
        self.assertEqual(Image.open(io.BytesIO(data)).size, (1920, 960))

    def test_upload_without_compression_keeps_name(self):
        response = self.client.post('/api/v1/media/upload/', {
            'file': self.upload_file(name='necklace-black_leather-ruby-white_gold.PNG'),
            'bucket': 'customization-item',
            'folder': 'necklaces',
            'compress': 'false',
        }, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['path'], 'necklaces/necklace-black_leather-ruby-white_gold.PNG')
        self.assertEqual(response.data['content_type'], 'image/png')

    def test_upload_rejects_bad_input(self):
        response = self.client.post('/api/v1/media/upload/', {
            'file': self.upload_file(), 'bucket': 'secrets',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/media/upload/', {
            'file': self.upload_file(), 'bucket': 'item-pictures', 'folder': '../etc',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.post('/api/v1/media/upload/', {
            'file': self.upload_file(data=b'not an image'), 'bucket': 'item-pictures',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_upload_storage_failure(self):
        self.storage.upload.side_effect = StorageError('Could not upload: connection reset by peer')
        response = self.client.post('/api/v1/media/upload/', {
            'file': self.upload_file(), 'bucket': 'item-pictures',
        }, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(response.data['category'], 'network')
        self.assertEqual(response.data['title'], 'Connection Error')

    def test_upload_requires_admin(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/media/upload/', {
            'file': self.upload_file(), 'bucket': 'item-pictures',
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_gallery_is_public(self):
        add_variant_image('ring-ruby', 'https://cdn.test/ruby.webp')
        self.client.logout()

        response = self.client.get('/api/v1/media/galleries/ring-ruby.webp/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['images'], ['https://cdn.test/ruby.webp'])

    def test_variant_image_crud(self):
        url = '/api/v1/media/variant-images/ring-ruby/'
        response = self.client.post(url, {'image_url': 'https://cdn.test/1.webp', 'is_primary': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        first_id = response.data['id']
        second_id = self.client.post(url, {'image_url': 'https://cdn.test/2.webp'}, format='json').data['id']

        response = self.client.post(f'{url}reorder/', {'image_ids': [second_id, first_id]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([image['id'] for image in self.client.get(url).data], [second_id, first_id])

        response = self.client.post(f'{url}reorder/', {'image_ids': [second_id, 99999]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

        response = self.client.post(f'{url}reorder/', {'image_ids': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/v1/media/variant-image/{first_id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(len(self.client.get(url).data), 1)

    def test_shared_media_link(self):
        response = self.client.post('/api/v1/media/shared-media/', {
            'name': 'Gift box', 'image_url': 'https://cdn.test/box.webp', 'tags': ['packaging'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.post('/api/v1/media/shared-media/link/ring-ruby/', {
            'shared_media_id': response.data['id'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['variant_key'], 'ring-ruby')
        self.assertEqual(response.data['shared_media']['name'], 'Gift box')
        self.assertEqual(get_variant_images_by_filename('ring-ruby.webp'), ['https://cdn.test/box.webp'])
